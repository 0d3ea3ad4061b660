"""FastAPI dependencies shared by the JSON and HTML routers."""

from __future__ import annotations

import uuid
from typing import AsyncIterator

from fastapi import HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from lunchscraper.models.api import LunchData

NIL_UUID = uuid.UUID(int=0)


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """One session (and one read transaction) per request."""
    async with request.app.state.session_factory() as session:
        async with session.begin():
            yield session


def require_id(value: uuid.UUID) -> uuid.UUID:
    if value == NIL_UUID:
        raise HTTPException(status_code=404, detail="not found")
    return value


def found(data: LunchData) -> LunchData:
    if data.is_empty():
        raise HTTPException(status_code=404, detail="not found")
    return data
