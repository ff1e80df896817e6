#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pages router
============
GET    /api/v1/pages                     — list page titles
GET    /api/v1/pages/{title}/raw         — get raw source
GET    /api/v1/pages/{title}/backlinks   — pages linking here
GET    /api/v1/pages/{title}/toc         — table of contents
GET    /api/v1/pages/{title}             — get page (rendered, with TOC and comments)
PUT    /api/v1/pages/{title}             — create or update page
DELETE /api/v1/pages/{title}             — delete page and its comments

Titles may contain "/", so {title} is a path parameter and the fixed
sub-resources are declared before the bare page routes.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from pagewiki.core.database import get_db
from pagewiki.models import Page
from pagewiki.schemas import (
    CommentResponse, OKResponse,
    PageResponse, PageSave, PageSaveResponse,
    TocEntryResponse,
)
from pagewiki.services import pages as page_svc
from pagewiki.services.renderer import generate_table_of_contents


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/pages", tags=["pages"])


# -----------------------------------------------------------------------------

async def _page_response(db: AsyncSession, page: Page, render_html: bool = True) -> PageResponse:
    rendered = await page_svc.get_rendered(db, page) if render_html else None
    return PageResponse(
        id=page.id,
        title=page.title,
        content=page.content,
        rendered=rendered,
        tags=page.tags or [],
        categories=page.categories or [],
        links=page.links or [],
        toc=[TocEntryResponse.model_validate(e) for e in generate_table_of_contents(page.content)],
        comments=[CommentResponse.model_validate(c) for c in page.comments],
        last_modified_by=page.last_modified_by,
        created_at=page.created_at,
        last_modified=page.last_modified,
    )


# ── List ─────────────────────────────────────────────────────────────────────

@router.get("", response_model=list[str])
async def list_pages(db: AsyncSession = Depends(get_db)):
    return await page_svc.list_page_titles(db)


# ── Raw source ────────────────────────────────────────────────────────────────

@router.get("/{title:path}/raw")
async def get_page_raw(title: str, db: AsyncSession = Depends(get_db)):
    page = await page_svc.get_page(db, title)
    return Response(content=page.content, media_type="text/plain; charset=utf-8")


# ── Backlinks ─────────────────────────────────────────────────────────────────

@router.get("/{title:path}/backlinks", response_model=list[str])
async def get_backlinks(title: str, db: AsyncSession = Depends(get_db)):
    return await page_svc.get_backlinks(db, title)


# ── Table of contents ─────────────────────────────────────────────────────────

@router.get("/{title:path}/toc", response_model=list[TocEntryResponse])
async def get_toc(title: str, db: AsyncSession = Depends(get_db)):
    page = await page_svc.get_page(db, title)
    return [TocEntryResponse.model_validate(e) for e in generate_table_of_contents(page.content)]


# ── Read ──────────────────────────────────────────────────────────────────────

@router.get("/{title:path}", response_model=PageResponse)
async def get_page(
    title: str,
    render_html: bool = Query(True, alias="render"),
    db: AsyncSession  = Depends(get_db),
):
    page = await page_svc.get_page(db, title, with_comments=True)
    return await _page_response(db, page, render_html=render_html)


# ── Save ──────────────────────────────────────────────────────────────────────

@router.put("/{title:path}", response_model=PageSaveResponse)
async def save_page(
    title: str,
    data: PageSave,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    page, created = await page_svc.save_page(db, title, data)
    if created:
        response.status_code = 201
    return PageSaveResponse(
        status="created" if created else "saved",
        page=await _page_response(db, page),
    )


# ── Delete ────────────────────────────────────────────────────────────────────

@router.delete("/{title:path}", response_model=OKResponse)
async def delete_page(title: str, db: AsyncSession = Depends(get_db)):
    await page_svc.delete_page(db, title)
    return OKResponse(message=f"Page '{title}' deleted")


# -----------------------------------------------------------------------------
