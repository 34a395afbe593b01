from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends

from ..auth import AuthenticatedContext, require_user
from ..dependencies import get_store
from ..errors import NotFoundError, ValidationError
from ..repositories import Store
from ..schemas import ErrorResponse, TaskResponse
from ..utils import task_envelope

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["tasks"],
    dependencies=[Depends(require_user)],
    responses={401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"}},
)


# PUBLIC_INTERFACE
@router.post(
    "/add-task",
    response_model=TaskResponse,
    summary="Add Task",
    description="Insert a task with arbitrary fields. The store assigns the `_id`.",
    responses={
        200: {"description": "Task added"},
        400: {"model": ErrorResponse, "description": "Body is not a JSON object"},
        500: {"model": ErrorResponse, "description": "Store error"},
    },
)
def add_task(
    payload: Dict[str, Any] = Body(..., examples=[{"title": "Buy groceries", "description": "Milk, eggs"}]),
    store: Store = Depends(get_store),
    user: AuthenticatedContext = Depends(require_user),
) -> Dict[str, Any]:
    """
    Create a new task.
    """
    task_id = store.insert_task(payload)
    logger.info("Task %s added by %s", task_id, user.email)
    return task_envelope("task added", {"inserted_id": task_id})


# PUBLIC_INTERFACE
@router.get(
    "/tasks",
    response_model=TaskResponse,
    summary="List Tasks",
    description="Return every task.",
    responses={500: {"model": ErrorResponse, "description": "Store error"}},
)
def list_tasks(store: Store = Depends(get_store)) -> Dict[str, Any]:
    """
    List all tasks.
    """
    return task_envelope("task list fetched", store.list_tasks())


# PUBLIC_INTERFACE
@router.get(
    "/task/{task_id}",
    response_model=TaskResponse,
    summary="Get Task",
    description="Get a single task by id.",
    responses={404: {"model": ErrorResponse, "description": "Task not found"}},
)
def get_task(task_id: str, store: Store = Depends(get_store)) -> Dict[str, Any]:
    """
    Retrieve a single task by its id.
    """
    task = store.get_task(task_id)
    if task is None:
        raise NotFoundError("Task not found")
    return task_envelope("task fetched", task)


# PUBLIC_INTERFACE
@router.put(
    "/update-task",
    response_model=TaskResponse,
    summary="Update Task",
    description=(
        "Partially update a task. The body must carry `_id`; every other supplied "
        "field is merged into the stored task and omitted fields are left untouched."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Missing `_id` or nothing to update"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
def update_task(
    payload: Dict[str, Any] = Body(..., examples=[{"_id": "65f1c0c2a1b2c3d4e5f60718", "title": "Buy groceries and supplies"}]),
    store: Store = Depends(get_store),
    user: AuthenticatedContext = Depends(require_user),
) -> Dict[str, Any]:
    """
    Merge supplied fields into an existing task.
    """
    task_id = payload.get("_id")
    if not task_id or not isinstance(task_id, str):
        raise ValidationError("_id is required")
    fields = {k: v for k, v in payload.items() if k != "_id"}
    if not fields:
        raise ValidationError("No fields to update")

    outcome = store.update_task(task_id, fields)
    if outcome.matched == 0:
        raise NotFoundError("Task not found")
    logger.info("Task %s updated by %s (%d modified)", task_id, user.email, outcome.modified)
    return task_envelope("task updated", store.get_task(task_id))


# PUBLIC_INTERFACE
@router.delete(
    "/delete/{task_id}",
    response_model=TaskResponse,
    summary="Delete Task",
    description="Delete a task by id.",
    responses={404: {"model": ErrorResponse, "description": "Task not found"}},
)
def delete_task(
    task_id: str,
    store: Store = Depends(get_store),
    user: AuthenticatedContext = Depends(require_user),
) -> Dict[str, Any]:
    """
    Delete a task. Returns 404 if it does not exist.
    """
    deleted = store.delete_task(task_id)
    if deleted == 0:
        raise NotFoundError("Task not found")
    logger.info("Task %s deleted by %s", task_id, user.email)
    return task_envelope("task deleted", {"deleted_count": deleted})


# PUBLIC_INTERFACE
@router.delete(
    "/delete-multiple",
    response_model=TaskResponse,
    summary="Delete Tasks",
    description=(
        "Delete every task whose id is in the JSON array body. Unknown ids are skipped; "
        "`success` is false when nothing was deleted."
    ),
    responses={400: {"model": ErrorResponse, "description": "Empty or non-array body"}},
)
def delete_multiple(
    ids: List[str] = Body(..., examples=[["65f1c0c2a1b2c3d4e5f60718", "65f1c0c2a1b2c3d4e5f60719"]]),
    store: Store = Depends(get_store),
    user: AuthenticatedContext = Depends(require_user),
) -> Dict[str, Any]:
    """
    Bulk delete by id set.
    """
    if not ids:
        raise ValidationError("No ids provided")
    deleted = store.delete_tasks(ids)
    logger.info("Bulk delete by %s removed %d of %d tasks", user.email, deleted, len(ids))
    if deleted > 0:
        return task_envelope("tasks deleted", {"deleted_count": deleted})
    return task_envelope("No tasks deleted", {"deleted_count": 0}, success=False)
