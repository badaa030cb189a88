"""
Client preference store: a flat key -> text map, independent of tasks.
"""

import json
from typing import Any, Mapping

from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from todo_api.exceptions import ValidationError
from todo_api.logging_config import get_logger
from todo_api.models import Setting

logger = get_logger(__name__)


def stringify(value: Any) -> str:
    """
    Coerce a JSON value to the text we store.

    Scalars read the way they were written in JSON (``true``, ``null``,
    ``3``); objects and arrays are stored as compact JSON.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (bool, type(None), dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


async def set_preferences(session: AsyncSession, values: Mapping[str, Any]) -> int:
    """
    Insert or overwrite every key in one batched write.

    Returns:
        Number of keys written
    """
    if not isinstance(values, Mapping):
        raise ValidationError("Settings must be a JSON object")
    if not values:
        return 0

    rows = [{"key": str(key), "value": stringify(value)} for key, value in values.items()]
    statement = insert(Setting).values(rows)
    statement = statement.on_conflict_do_update(
        index_elements=["key"],
        set_={"value": statement.excluded.value},
    )
    await session.execute(statement)

    logger.info(f"Saved settings: {sorted(row['key'] for row in rows)}")

    return len(rows)


async def get_all_preferences(session: AsyncSession) -> dict[str, str | None]:
    """Every stored setting as key -> text."""
    result = await session.execute(select(Setting))
    return {setting.key: setting.value for setting in result.scalars().all()}
