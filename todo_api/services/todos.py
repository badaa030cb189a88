"""
Mutation protocol and queries for the task forest.

Every function takes the session of an open unit of work (see
``Database.session``); the caller's commit/rollback makes multi-row changes
all-or-nothing.
"""

from typing import Any, Sequence

from sqlalchemy import text, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from todo_api.exceptions import ReparentCycleError, ValidationError
from todo_api.logging_config import get_logger
from todo_api.models import Todo
from todo_api.schemas import ReorderIntent, TodoCreate
from todo_api.services.tree import apply_moves, fetch_parent_links, find_cycle

logger = get_logger(__name__)

PATCHABLE_FIELDS = ("title", "completed", "description", "priority", "due_date")

# Root plus every descendant, any depth. UNION (not UNION ALL) so a corrupt
# parent cycle cannot make the recursion run forever.
SUBTREE_IDS = """
    WITH RECURSIVE subtree(id) AS (
        SELECT id FROM todos WHERE id = :root_id
        UNION
        SELECT t.id
        FROM todos t
        INNER JOIN subtree s ON t.parent_id = s.id
    )
    SELECT id FROM subtree
"""


async def list_todos(session: AsyncSession) -> list[Todo]:
    """All tasks, siblings in display order: sort_order, then id."""
    result = await session.execute(
        select(Todo).order_by(Todo.sort_order.asc(), Todo.id.asc())
    )
    todos = list(result.scalars().all())

    logger.debug(f"Listed {len(todos)} todos")

    return todos


async def create_todo(session: AsyncSession, todo_in: TodoCreate) -> Todo:
    """
    Insert a new, incomplete task at sort_order 0.

    Raises:
        ValidationError: title is empty, or parent_id names no task
    """
    if not todo_in.title:
        raise ValidationError("Title is required")

    if todo_in.parent_id is not None:
        parent = await session.get(Todo, todo_in.parent_id)
        if parent is None:
            raise ValidationError(f"Parent task {todo_in.parent_id} does not exist")

    todo = Todo(**todo_in.model_dump(), completed=False, sort_order=0)
    session.add(todo)
    await session.flush()
    await session.refresh(todo)

    logger.info(f"Created todo: id={todo.id} title='{todo.title}' parent={todo.parent_id}")

    return todo


async def patch_todo(session: AsyncSession, todo_id: int, changes: dict[str, Any]) -> int:
    """
    Apply only the given fields to one task.

    A missing id is not an error; the returned row count is simply 0.

    Raises:
        ValidationError: no patchable field was provided
    """
    values = {field: changes[field] for field in PATCHABLE_FIELDS if field in changes}
    if not values:
        raise ValidationError("No update fields provided")
    if "title" in values and not values["title"]:
        raise ValidationError("Title cannot be empty")

    logger.info(f"Updating todo {todo_id}: {values}")

    result = await session.execute(
        update(Todo)
        .where(Todo.id == todo_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def complete_recursive(session: AsyncSession, todo_id: int, completed: bool) -> int:
    """
    Set ``completed`` on a task and all of its descendants.

    The closure and the update are one statement, so they see the same
    snapshot and need no per-level round trips.

    Returns:
        Rows updated (0 if the task does not exist)
    """
    result = await session.execute(
        text(f"UPDATE todos SET completed = :completed WHERE id IN ({SUBTREE_IDS})"),
        {"root_id": todo_id, "completed": completed},
    )
    updated = result.rowcount

    logger.info(f"Set completed={completed} on subtree of todo {todo_id}: {updated} rows")

    return updated


async def reorder_todos(session: AsyncSession, intents: Sequence[ReorderIntent]) -> int:
    """
    Apply a batch of (id, parent_id, sort_order) moves in order.

    The batch is validated against the forest it would produce before any
    row is written: every id and parent must exist and no task may become
    its own ancestor. Later intents for the same id override earlier ones.

    Returns:
        Number of intents applied

    Raises:
        ValidationError: payload is not a sequence, or names unknown tasks
        ReparentCycleError: the moves would create a parent cycle
    """
    if isinstance(intents, (str, bytes)) or not isinstance(intents, Sequence):
        raise ValidationError("Updates must be an array")
    if not intents:
        return 0

    parent_links = await fetch_parent_links(session)

    unknown_ids = sorted({i.id for i in intents if i.id not in parent_links})
    if unknown_ids:
        raise ValidationError(f"Unknown task ids in reorder batch: {unknown_ids}")

    unknown_parents = sorted({
        i.parent_id for i in intents
        if i.parent_id is not None and i.parent_id not in parent_links
    })
    if unknown_parents:
        raise ValidationError(f"Unknown parent ids in reorder batch: {unknown_parents}")

    proposed = apply_moves(parent_links, ((i.id, i.parent_id) for i in intents))
    cycle = find_cycle(proposed)
    if cycle is not None:
        logger.warning(f"Reorder rejected, parent cycle: {cycle}")
        raise ReparentCycleError(cycle)

    for intent in intents:
        await session.execute(
            update(Todo)
            .where(Todo.id == intent.id)
            .values(parent_id=intent.parent_id, sort_order=intent.sort_order)
            .execution_options(synchronize_session=False)
        )

    logger.info(f"Reordered {len(intents)} todos")

    return len(intents)


async def delete_todo(session: AsyncSession, todo_id: int) -> int:
    """
    Delete a task; the foreign key cascade removes its whole subtree.

    Returns:
        Rows removed, i.e. the subtree size (0 if the task does not exist)
    """
    result = await session.execute(
        text(f"SELECT COUNT(*) FROM ({SUBTREE_IDS})"),
        {"root_id": todo_id},
    )
    subtree_size = result.scalar_one()
    if subtree_size == 0:
        return 0

    await session.execute(text("DELETE FROM todos WHERE id = :id"), {"id": todo_id})

    logger.info(f"Deleted todo {todo_id} and {subtree_size - 1} descendants")

    return subtree_size
