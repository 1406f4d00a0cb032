"""
api/routes/v1/todos.py -- Todo item routes for the TodoList REST API.

Routes:
  GET    /todos            -- caller's items, newest first
  GET    /todos/{todo_id}  -- one item
  POST   /todos            -- create item (201 + Location)
  PUT    /todos/{todo_id}  -- replace title and completion flag
  DELETE /todos/{todo_id}  -- remove item (204)

Isolation:
  Handlers pass caller.id into every TodoService call. The service returns
  None/False both for missing items and for items owned by someone else; both
  become the same 404 here. There is no 403 path on this router.

  A todo_id that is not a UUID cannot name any record, so it is also a 404 --
  not a 422 that would reveal the id format is being checked.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import TodoCreate, TodoResponse, TodoUpdate
from auth.dependencies import get_current_user
from auth.models import Caller
from todos.service import InvalidTitleError, TodoService, validate_title

logger = logging.getLogger("todolist.api")

# All todo routes require authentication. Handlers still declare the
# dependency themselves because they need the Caller value.
router = APIRouter(dependencies=[Depends(get_current_user)])


def _service(request: Request) -> TodoService:
    return request.app.state.todo_service


def _parse_todo_id(raw: str) -> str | None:
    """Return the canonical UUID string, or None if raw is not a UUID."""
    try:
        return str(uuid.UUID(raw))
    except ValueError:
        return None


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": "Todo item not found."},
    )


def _invalid_title(exc: InvalidTitleError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"code": "invalid_title", "message": str(exc)},
    )


# ---------------------------------------------------------------------------
# GET /todos
# ---------------------------------------------------------------------------


@router.get("/todos", response_model=list[TodoResponse])
def list_todos(
    caller: Caller = Depends(get_current_user),
    svc: TodoService = Depends(_service),
) -> list[TodoResponse]:
    """List the caller's todo items, newest first."""
    items = svc.list(caller.id)
    logger.info("Retrieved %d todos for user %s", len(items), caller.id)
    return [TodoResponse.from_item(i) for i in items]


# ---------------------------------------------------------------------------
# GET /todos/{todo_id}
# ---------------------------------------------------------------------------


@router.get("/todos/{todo_id}", response_model=TodoResponse)
def get_todo(
    todo_id: str,
    caller: Caller = Depends(get_current_user),
    svc: TodoService = Depends(_service),
) -> TodoResponse:
    """Return one todo item owned by the caller."""
    item_id = _parse_todo_id(todo_id)
    item = svc.get(item_id, caller.id) if item_id else None
    if item is None:
        logger.warning("Todo %s not found for user %s", todo_id, caller.id)
        raise _not_found()
    return TodoResponse.from_item(item)


# ---------------------------------------------------------------------------
# POST /todos
# ---------------------------------------------------------------------------


@router.post("/todos", response_model=TodoResponse, status_code=201)
def create_todo(
    body: TodoCreate,
    response: Response,
    caller: Caller = Depends(get_current_user),
    svc: TodoService = Depends(_service),
) -> TodoResponse:
    """Create a todo item owned by the caller. The title is stored trimmed."""
    try:
        item = svc.create(body.title, caller.id)
    except InvalidTitleError as exc:
        logger.warning("Failed to create todo for user %s: %s", caller.id, exc)
        raise _invalid_title(exc) from exc
    response.headers["Location"] = f"/api/v1/todos/{item.id}"
    return TodoResponse.from_item(item)


# ---------------------------------------------------------------------------
# PUT /todos/{todo_id}
# ---------------------------------------------------------------------------


@router.put("/todos/{todo_id}", response_model=TodoResponse)
def update_todo(
    todo_id: str,
    body: TodoUpdate,
    caller: Caller = Depends(get_current_user),
    svc: TodoService = Depends(_service),
) -> TodoResponse:
    """Replace title and completion flag of a todo item owned by the caller.

    The title is validated before the id is looked up, so an invalid title
    is a 400 even for ids that do not exist.
    """
    try:
        item_id = _parse_todo_id(todo_id)
        if item_id is None:
            # Same ordering as the service: validate the title first.
            validate_title(body.title)
            raise _not_found()
        item = svc.update(item_id, body.title, body.is_completed, caller.id)
    except InvalidTitleError as exc:
        logger.warning("Failed to update todo %s for user %s: %s", todo_id, caller.id, exc)
        raise _invalid_title(exc) from exc
    if item is None:
        logger.warning("Todo %s not found for update by user %s", todo_id, caller.id)
        raise _not_found()
    return TodoResponse.from_item(item)


# ---------------------------------------------------------------------------
# DELETE /todos/{todo_id}
# ---------------------------------------------------------------------------


@router.delete("/todos/{todo_id}", status_code=204)
def delete_todo(
    todo_id: str,
    caller: Caller = Depends(get_current_user),
    svc: TodoService = Depends(_service),
) -> Response:
    """Delete a todo item owned by the caller."""
    item_id = _parse_todo_id(todo_id)
    deleted = svc.delete(item_id, caller.id) if item_id else False
    if not deleted:
        logger.warning("Todo %s not found for deletion by user %s", todo_id, caller.id)
        raise _not_found()
    logger.info("Todo %s deleted by user %s", item_id, caller.id)
    return Response(status_code=204)
