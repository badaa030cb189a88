"""
Task routes for the Infinity Todo API.
"""

from fastapi import APIRouter, Depends

from todo_api.database import Database, get_database
from todo_api.schemas import (
    TodoCreate,
    TodoUpdate,
    TodoRead,
    StatusUpdate,
    ReorderRequest,
    UpdatedResponse,
    DeletedResponse,
    SuccessResponse,
)
from todo_api.services import todos as todo_service

router = APIRouter()


@router.get("", response_model=list[TodoRead])
async def list_todos(database: Database = Depends(get_database)):
    """All tasks ordered by sort_order, then id."""
    async with database.session() as session:
        return await todo_service.list_todos(session)


@router.post("", response_model=TodoRead)
async def create_todo(
    todo_in: TodoCreate,
    database: Database = Depends(get_database),
):
    """Create a task; it starts incomplete at sort_order 0."""
    async with database.session() as session:
        return await todo_service.create_todo(session, todo_in)


# Declared before /{todo_id} so "reorder" is not parsed as an id
@router.put("/reorder", response_model=SuccessResponse)
async def reorder_todos(
    body: ReorderRequest,
    database: Database = Depends(get_database),
) -> SuccessResponse:
    """Apply a drag-and-drop batch of moves atomically."""
    async with database.session() as session:
        await todo_service.reorder_todos(session, body.updates)
    return SuccessResponse()


@router.put("/{todo_id}/status-recursive", response_model=UpdatedResponse)
async def set_status_recursive(
    todo_id: int,
    body: StatusUpdate,
    database: Database = Depends(get_database),
) -> UpdatedResponse:
    """Set completed on a task and every descendant."""
    async with database.session() as session:
        updated = await todo_service.complete_recursive(session, todo_id, body.completed)
    return UpdatedResponse(updated=updated)


@router.put("/{todo_id}", response_model=UpdatedResponse)
async def update_todo(
    todo_id: int,
    todo_in: TodoUpdate,
    database: Database = Depends(get_database),
) -> UpdatedResponse:
    """Patch the fields present in the body; a missing id reports 0."""
    async with database.session() as session:
        updated = await todo_service.patch_todo(
            session, todo_id, todo_in.model_dump(exclude_unset=True)
        )
    return UpdatedResponse(updated=updated)


@router.delete("/{todo_id}", response_model=DeletedResponse)
async def delete_todo(
    todo_id: int,
    database: Database = Depends(get_database),
) -> DeletedResponse:
    """Delete a task together with its subtree."""
    async with database.session() as session:
        deleted = await todo_service.delete_todo(session, todo_id)
    return DeletedResponse(deleted=deleted)
