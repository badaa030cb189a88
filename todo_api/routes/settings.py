"""
Preference routes for the Infinity Todo API.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from todo_api.database import Database, get_database
from todo_api.schemas import SuccessResponse
from todo_api.services import preferences

router = APIRouter()


@router.get("", response_model=dict[str, str | None])
async def read_settings(database: Database = Depends(get_database)):
    """Every stored preference as key -> text."""
    async with database.session() as session:
        return await preferences.get_all_preferences(session)


@router.post("", response_model=SuccessResponse)
async def save_settings(
    values: dict[str, Any] = Body(...),
    database: Database = Depends(get_database),
) -> SuccessResponse:
    """Upsert the given keys; values are stored as text."""
    async with database.session() as session:
        await preferences.set_preferences(session, values)
    return SuccessResponse()
