"""
todos/store.py -- SQLAlchemy-backed persistence layer for todo records.

Uses SQLAlchemy Core (not ORM) so the dataclass in todos/models.py remains the
authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. TodoStore is the repository; _row_to_item
is the mapper. The service layer never touches SQL directly.

Isolation: every read that can return another identity's row is filtered by
owner_id in SQL. list_for_owner() never loads foreign rows into memory, and
update()/delete() repeat the owner check in their WHERE clause so a stale
service-level check cannot touch someone else's record.

Atomicity: each write is a single statement committed on its own connection,
so a concurrent reader sees either the pre- or post-image of a row. Concurrent
updates to the same record are last-writer-wins.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TodoStore("sqlite:///./todolist.db")
    store.add(item)
    items = store.list_for_owner(owner_id)
    store.close()
"""

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table, create_engine, event, text
from sqlalchemy.engine import Engine

from todos.models import TodoItem

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_todos = Table(
    "todo_items",
    metadata,
    # seq preserves insertion order; it breaks created_at ties so the
    # newest-first listing is a stable sort.
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(36), nullable=False, unique=True),  # UUID4 string
    Column("owner_id", String(36), nullable=False, index=True),
    Column("title", String(500), nullable=False),
    Column("is_completed", Boolean, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers proceed without blocking during writes."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TodoStore:
    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # SQLite requires check_same_thread=False when used from FastAPI's
            # threadpool, where one pooled connection may serve several threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, item_id: str) -> TodoItem | None:
        """Return the record with this id regardless of owner, or None.

        Callers outside todos/service.py must not expose the result without
        running the ownership check.
        """
        with self.engine.connect() as conn:
            row = conn.execute(_todos.select().where(_todos.c.id == item_id)).fetchone()
        return _row_to_item(row) if row is not None else None

    def list_for_owner(self, owner_id: str) -> list[TodoItem]:
        """Return every record owned by owner_id, newest first.

        Ties on created_at keep insertion order.
        """
        with self.engine.connect() as conn:
            rows = conn.execute(
                _todos.select()
                .where(_todos.c.owner_id == owner_id)
                .order_by(_todos.c.created_at.desc(), _todos.c.seq.asc())
            ).fetchall()
        return [_row_to_item(r) for r in rows]

    def count(self) -> int:
        """Return the total number of records across all owners."""
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM todo_items")).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, item: TodoItem) -> TodoItem:
        """Insert a new record. Raises sqlalchemy.exc.IntegrityError on a duplicate id."""
        with self.engine.connect() as conn:
            conn.execute(
                _todos.insert().values(
                    id=item.id,
                    owner_id=item.owner_id,
                    title=item.title,
                    is_completed=item.is_completed,
                    created_at=item.created_at,
                )
            )
            conn.commit()
        return item

    def update(self, item: TodoItem) -> bool:
        """Persist title and completion flag for an existing record.

        id, owner_id and created_at are never written. Returns True if a row
        was updated, False if no row matches both id and owner_id.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _todos.update()
                .where((_todos.c.id == item.id) & (_todos.c.owner_id == item.owner_id))
                .values(title=item.title, is_completed=item.is_completed)
            )
            conn.commit()
        return result.rowcount > 0

    def delete(self, item_id: str, owner_id: str) -> bool:
        """Delete a record. Returns True if deleted, False if not found or wrong owner."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _todos.delete().where((_todos.c.id == item_id) & (_todos.c.owner_id == owner_id))
            )
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_item(row) -> TodoItem:
    return TodoItem(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        is_completed=bool(row.is_completed),
        created_at=row.created_at,
    )
