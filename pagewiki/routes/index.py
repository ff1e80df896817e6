#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Tag and category index
======================
GET /api/v1/tags                       — all tags with page counts
GET /api/v1/tags/{tag}/pages           — pages carrying a tag
GET /api/v1/categories                 — all categories with page counts
GET /api/v1/categories/{name}/pages    — pages in a category
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pagewiki.core.database import get_db
from pagewiki.schemas import IndexEntry
from pagewiki.services import pages as page_svc


# -----------------------------------------------------------------------------

router = APIRouter(tags=["index"])


# ── Tags ─────────────────────────────────────────────────────────────────────

@router.get("/tags", response_model=list[IndexEntry])
async def list_tags(db: AsyncSession = Depends(get_db)):
    return [IndexEntry(name=n, count=c) for n, c in await page_svc.get_all_tags(db)]


@router.get("/tags/{tag}/pages", response_model=list[str])
async def pages_with_tag(tag: str, db: AsyncSession = Depends(get_db)):
    return await page_svc.get_pages_with_tag(db, tag)


# ── Categories ───────────────────────────────────────────────────────────────

@router.get("/categories", response_model=list[IndexEntry])
async def list_categories(db: AsyncSession = Depends(get_db)):
    return [IndexEntry(name=n, count=c) for n, c in await page_svc.get_all_categories(db)]


@router.get("/categories/{name}/pages", response_model=list[str])
async def pages_in_category(name: str, db: AsyncSession = Depends(get_db)):
    return await page_svc.get_pages_in_category(db, name)


# -----------------------------------------------------------------------------
