from sqlmodel import SQLModel, Field


class Todo(SQLModel, table=True):
    """
    A node in the task forest.

    Key fields:
    - parent_id: NULL for root-level tasks; deleting a parent deletes the subtree
    - sort_order: sibling display order, ties broken by id
    """

    __tablename__ = "todos"
    # AUTOINCREMENT keeps SQLite from handing out ids of deleted rows again
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    parent_id: int | None = Field(
        default=None,
        foreign_key="todos.id",
        ondelete="CASCADE",
        nullable=True,
    )
    title: str
    completed: bool = Field(default=False)
    sort_order: int = Field(default=0)
    description: str = Field(default="")
    priority: int = Field(default=0)
    due_date: str | None = Field(default=None)  # free-form, not validated
