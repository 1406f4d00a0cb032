"""
auth/credentials.py -- Password hashing, password policy, and the credential store.

Security design decisions:
  Passwords: bcrypt directly (no passlib wrapper). Bcrypt is the right choice
       for low-entropy secrets because its cost factor makes brute-force
       expensive. Passwords are capped at 100 characters by policy, which
       keeps UTF-8 input near bcrypt's 72-byte truncation limit; the encoded
       bytes are sliced to 72 explicitly because bcrypt 4.x rejects longer input.

  Timing equalization: authenticate() always runs exactly one bcrypt
       comparison. When the email is unknown it compares against _DUMMY_HASH,
       so response time does not reveal whether an account exists.

  Policy: enforced here, not in the token or todo layers. Minimum length 6,
       at least one digit, one lowercase, one uppercase and one
       non-alphanumeric character.

Layer rule: no imports from api/, core/, or todos/.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.models import Identity
from auth.store import DuplicateEmailError, UserStore

logger = logging.getLogger("todolist.auth")

__all__ = [
    "CredentialStore",
    "DuplicateEmailError",
    "WeakPasswordError",
    "check_password_policy",
    "hash_password",
    "verify_password",
]

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100


class WeakPasswordError(ValueError):
    """Raised when a registration password fails the policy.

    problems holds one human-readable message per failed rule so the route
    layer can return all of them at once.
    """

    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = problems


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:72]


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("todolist_timing_dummy")


# ---------------------------------------------------------------------------
# Password policy
# ---------------------------------------------------------------------------


def check_password_policy(password: str) -> list[str]:
    """Return the list of policy violations for password (empty when acceptable)."""
    problems: list[str] = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"Passwords must be at least {PASSWORD_MIN_LENGTH} characters.")
    if len(password) > PASSWORD_MAX_LENGTH:
        problems.append(f"Passwords must be at most {PASSWORD_MAX_LENGTH} characters.")
    if not any(c.isdigit() for c in password):
        problems.append("Passwords must have at least one digit ('0'-'9').")
    if not any(c.islower() for c in password):
        problems.append("Passwords must have at least one lowercase ('a'-'z').")
    if not any(c.isupper() for c in password):
        problems.append("Passwords must have at least one uppercase ('A'-'Z').")
    if all(c.isalnum() for c in password):
        problems.append("Passwords must have at least one non alphanumeric character.")
    return problems


# ---------------------------------------------------------------------------
# Credential store
# ---------------------------------------------------------------------------


class CredentialStore:
    """Identity creation and password verification on top of a UserStore.

    This is the only object the auth routes talk to for credentials. It owns
    the password policy and the hashing scheme; UserStore only persists rows.
    """

    def __init__(self, users: UserStore) -> None:
        self._users = users

    def find_by_email(self, email: str) -> Identity | None:
        return self._users.get_by_email(email)

    def create(self, email: str, password: str) -> Identity:
        """Register a new identity.

        Raises WeakPasswordError before any lookup or hashing when the policy
        rejects the password, and DuplicateEmailError when the email is taken.
        """
        problems = check_password_policy(password)
        if problems:
            raise WeakPasswordError(problems)
        if self._users.get_by_email(email) is not None:
            raise DuplicateEmailError(email)
        return self._users.create_user(email, hash_password(password))

    def verify_password(self, identity: Identity, password: str) -> bool:
        return verify_password(password, identity.hashed_password)

    def authenticate(self, email: str, password: str) -> Identity | None:
        """Return the identity for a valid email/password pair, else None.

        Unknown email and wrong password are indistinguishable to the caller,
        both in the return value and in elapsed time. Do NOT inline
        find_by_email() + verify_password() in route code -- that
        re-introduces the timing difference.
        """
        identity = self._users.get_by_email(email)
        if identity is None:
            verify_password(password, _DUMMY_HASH)
            return None
        if not self.verify_password(identity, password):
            return None
        return identity
