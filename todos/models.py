"""
todos/models.py -- Domain dataclass for todo records.

Pure data container with zero logic. Ownership checks and title validation
live in todos/service.py; persistence lives in todos/store.py.
"""

from dataclasses import dataclass


@dataclass
class TodoItem:
    """A single task owned by exactly one identity.

    owner_id is set once at creation and never changes. It is never sent to
    clients -- the API response model projects only id, title, is_completed
    and created_at.

    created_at is an ISO 8601 UTC timestamp with microsecond precision, set
    by TodoService from its clock.
    """

    id: str
    owner_id: str
    title: str
    created_at: str
    is_completed: bool = False
