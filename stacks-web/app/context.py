"""Request-scoped view context passed to the genotype and export routes."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Query
from pydantic import BaseModel

from app import config
from app.db import DB_NAME_RE


class ViewContext(BaseModel):
    database: str
    batch_id: int
    tag_id: int = 0


def _database(db: str | None) -> str:
    database = db or config.DEFAULT_DATABASE
    if not DB_NAME_RE.match(database):
        raise HTTPException(400, f"Invalid database name: {database}")
    return database


async def get_locus_context(batch_id: int, tag_id: int, db: str | None = Query(default=None)) -> ViewContext:
    return ViewContext(database=_database(db), batch_id=batch_id, tag_id=tag_id)


async def get_batch_context(batch_id: int, db: str | None = Query(default=None)) -> ViewContext:
    return ViewContext(database=_database(db), batch_id=batch_id)


# Convenience type aliases for dependency injection
LocusContext = Annotated[ViewContext, Depends(get_locus_context)]
BatchContext = Annotated[ViewContext, Depends(get_batch_context)]
