"""
todos/service.py -- Owner-isolated CRUD over todo records.

Every operation takes the caller's identity id explicitly; there is no
ambient "current user". Two rules hold for all of them:

  1. Ownership: authorize(item, caller_id) must pass before a record is
     returned, changed or removed.

  2. No existence leakage: a record owned by someone else produces exactly
     the same result as a record that does not exist -- None for get/update,
     False for delete. The route layer maps both to 404, never 403.

Title validation runs first in create() and update(), before any lookup, so
an invalid title is reported the same way whether or not the id exists.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from todos.models import TodoItem
from todos.store import TodoStore

logger = logging.getLogger("todolist.todos")

TITLE_MAX_LENGTH = 500


class InvalidTitleError(ValueError):
    """Raised when a title is empty or whitespace only after trimming."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_title(title: str) -> str:
    """Return the trimmed title, or raise InvalidTitleError."""
    title = title or ""
    # The limit applies to the title as submitted, surrounding whitespace included.
    if len(title) > TITLE_MAX_LENGTH:
        raise InvalidTitleError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters.")
    trimmed = title.strip()
    if not trimmed:
        raise InvalidTitleError("Title cannot be empty or whitespace only.")
    return trimmed


def authorize(item: TodoItem, caller_id: str) -> bool:
    """Return True only when caller_id owns item."""
    return item.owner_id == caller_id


class TodoService:
    """Todo CRUD parameterized by the caller's identity id.

    Args:
        store: Record store. Shared across requests; it is the only point of
               contention between concurrent callers.
        clock: Returns the current UTC datetime. Injected so ordering tests
               can create records at known instants.
    """

    def __init__(self, store: TodoStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock

    def list(self, caller_id: str) -> list[TodoItem]:
        """Return the caller's records, newest-created first."""
        return self._store.list_for_owner(caller_id)

    def get(self, item_id: str, caller_id: str) -> TodoItem | None:
        """Return the record, or None if it is absent or owned by someone else."""
        item = self._store.get(item_id)
        if item is None or not authorize(item, caller_id):
            return None
        return item

    def create(self, title: str, caller_id: str) -> TodoItem:
        """Create a record owned by the caller. Raises InvalidTitleError."""
        trimmed = validate_title(title)
        item = TodoItem(
            id=str(uuid.uuid4()),
            owner_id=caller_id,
            title=trimmed,
            is_completed=False,
            # Stored as UTC so the string sort in the store is chronological.
            created_at=self._clock().astimezone(timezone.utc).isoformat(timespec="microseconds"),
        )
        self._store.add(item)
        logger.info("Created todo item %s for user %s", item.id, caller_id)
        return item

    def update(self, item_id: str, title: str, completed: bool, caller_id: str) -> TodoItem | None:
        """Replace title and completion flag. Raises InvalidTitleError.

        Returns None if the record is absent or not owned by the caller.
        id, owner and created_at are left untouched.
        """
        trimmed = validate_title(title)
        existing = self.get(item_id, caller_id)
        if existing is None:
            return None
        updated = TodoItem(
            id=existing.id,
            owner_id=existing.owner_id,
            title=trimmed,
            is_completed=completed,
            created_at=existing.created_at,
        )
        # The store re-checks owner_id; False here means the row was deleted
        # between the lookup and the write.
        if not self._store.update(updated):
            return None
        return updated

    def delete(self, item_id: str, caller_id: str) -> bool:
        """Remove the record. False if it is absent or not owned by the caller."""
        existing = self.get(item_id, caller_id)
        if existing is None:
            return False
        return self._store.delete(existing.id, caller_id)
