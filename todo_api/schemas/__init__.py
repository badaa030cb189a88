from todo_api.schemas.todo import (
    TodoCreate,
    TodoUpdate,
    TodoRead,
    StatusUpdate,
    ReorderIntent,
    ReorderRequest,
    UpdatedResponse,
    DeletedResponse,
    SuccessResponse,
)

__all__ = [
    "TodoCreate",
    "TodoUpdate",
    "TodoRead",
    "StatusUpdate",
    "ReorderIntent",
    "ReorderRequest",
    "UpdatedResponse",
    "DeletedResponse",
    "SuccessResponse",
]
