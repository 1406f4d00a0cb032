"""
tests/test_credentials.py -- Unit tests for password policy and CredentialStore.

Covers:
  - Password policy: each rule reported, compliant password accepted
  - Registration stores a bcrypt hash, never the plaintext
  - Duplicate email rejected regardless of letter case, no second row
  - authenticate(): success, wrong password, unknown email
"""

from __future__ import annotations

import pytest

from auth.credentials import (
    CredentialStore,
    DuplicateEmailError,
    WeakPasswordError,
    check_password_policy,
    hash_password,
    verify_password,
)
from auth.store import UserStore


@pytest.fixture
def credentials(user_store: UserStore) -> CredentialStore:
    return CredentialStore(user_store)


class TestPasswordPolicy:
    def test_compliant_password_has_no_problems(self) -> None:
        assert check_password_policy("Secure1!") == []

    @pytest.mark.parametrize(
        "password, fragment",
        [
            ("Se1!", "at least 6"),
            ("Secure!!", "digit"),
            ("SECURE1!", "lowercase"),
            ("secure1!", "uppercase"),
            ("Secure11", "non alphanumeric"),
        ],
    )
    def test_each_rule_reported(self, password: str, fragment: str) -> None:
        problems = check_password_policy(password)
        assert any(fragment in p for p in problems)

    def test_too_long_rejected(self) -> None:
        assert any("at most 100" in p for p in check_password_policy("Aa1!" * 26))


class TestHashing:
    def test_hash_verifies(self) -> None:
        hashed = hash_password("Secure1!")
        assert hashed != "Secure1!"
        assert verify_password("Secure1!", hashed)
        assert not verify_password("Secure2!", hashed)

    def test_malformed_hash_does_not_verify(self) -> None:
        assert verify_password("Secure1!", "not-a-bcrypt-hash") is False


class TestCreate:
    def test_create_stores_hash(self, credentials: CredentialStore, user_store: UserStore) -> None:
        identity = credentials.create("a@x.com", "Secure1!")

        stored = user_store.get_by_id(identity.id)
        assert stored is not None
        assert stored.email == "a@x.com"
        assert stored.hashed_password != "Secure1!"
        assert credentials.verify_password(stored, "Secure1!")

    def test_weak_password_creates_nothing(self, credentials: CredentialStore) -> None:
        with pytest.raises(WeakPasswordError) as excinfo:
            credentials.create("a@x.com", "weak")
        assert len(excinfo.value.problems) >= 2
        assert credentials.find_by_email("a@x.com") is None

    def test_duplicate_email_any_case(self, credentials: CredentialStore, user_store: UserStore) -> None:
        first = credentials.create("a@x.com", "Secure1!")
        with pytest.raises(DuplicateEmailError):
            credentials.create("A@X.COM", "Other2@x")

        # Original identity untouched.
        found = user_store.get_by_email("a@x.com")
        assert found is not None
        assert found.id == first.id
        assert credentials.verify_password(found, "Secure1!")

    def test_store_unique_constraint_backs_lookup(self, user_store: UserStore) -> None:
        user_store.create_user("b@x.com", hash_password("Secure1!"))
        with pytest.raises(DuplicateEmailError):
            user_store.create_user(" B@x.com ", hash_password("Secure1!"))


class TestAuthenticate:
    def test_valid_credentials(self, credentials: CredentialStore) -> None:
        created = credentials.create("a@x.com", "Secure1!")
        identity = credentials.authenticate("A@x.com", "Secure1!")
        assert identity is not None
        assert identity.id == created.id

    def test_wrong_password(self, credentials: CredentialStore) -> None:
        credentials.create("a@x.com", "Secure1!")
        assert credentials.authenticate("a@x.com", "Secure2!") is None

    def test_unknown_email(self, credentials: CredentialStore) -> None:
        assert credentials.authenticate("nobody@x.com", "Secure1!") is None
