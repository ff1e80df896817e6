#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Search router
=============
GET /api/v1/search?q=...   — title and content search with highlighted snippets
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pagewiki.core.database import get_db
from pagewiki.schemas import SearchResult
from pagewiki.services.pages import search_pages


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/search", tags=["search"])


# -----------------------------------------------------------------------------

@router.get("", response_model=list[SearchResult])
async def search(
    q:     str       = Query(..., min_length=1, max_length=256, description="Search query"),
    limit: int       = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    return await search_pages(db, q, limit=limit)


# -----------------------------------------------------------------------------
