from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, model_validator


def _falsy_parent_to_root(value: int | None) -> int | None:
    """parent_id 0 (or null) means root level."""
    return value or None


ParentId = Annotated[int | None, AfterValidator(_falsy_parent_to_root)]
# null is accepted and stored as the column default
IntOrZero = Annotated[int | None, AfterValidator(lambda value: value or 0)]
TextOrEmpty = Annotated[str | None, AfterValidator(lambda value: value or "")]
# "" and null both mean "no date"
OptionalText = Annotated[str | None, AfterValidator(lambda value: value or None)]


class TodoCreate(BaseModel):
    """Schema for creating a new task."""
    title: str = Field(min_length=1)
    parent_id: ParentId = None
    description: TextOrEmpty = ""
    priority: IntOrZero = 0
    due_date: OptionalText = None

    model_config = {"extra": "forbid"}


class TodoUpdate(BaseModel):
    """
    Schema for patching a task.

    Only fields present in the request are applied; use
    ``model_dump(exclude_unset=True)`` to get them.
    """
    title: str | None = Field(default=None, min_length=1)
    completed: bool | None = None
    description: str | None = None
    priority: int | None = None
    due_date: OptionalText = None  # null or "" clears the due date

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def reject_null_for_required_columns(self):
        for name in ("title", "completed", "description", "priority"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class TodoRead(BaseModel):
    """Schema for reading a task."""
    id: int
    parent_id: int | None
    title: str
    completed: bool
    sort_order: int
    description: str
    priority: int
    due_date: str | None

    model_config = {"from_attributes": True}


class StatusUpdate(BaseModel):
    """Body of the recursive completion toggle."""
    completed: bool

    model_config = {"extra": "forbid"}


class ReorderIntent(BaseModel):
    """One (id, parent_id, sort_order) move within a reorder batch."""
    id: int
    parent_id: ParentId = None
    sort_order: IntOrZero = 0

    model_config = {"extra": "forbid"}


class ReorderRequest(BaseModel):
    """A drag-and-drop batch, applied in order, all or nothing."""
    updates: list[ReorderIntent]

    model_config = {"extra": "forbid"}


class UpdatedResponse(BaseModel):
    updated: int


class DeletedResponse(BaseModel):
    deleted: int


class SuccessResponse(BaseModel):
    success: bool = True
