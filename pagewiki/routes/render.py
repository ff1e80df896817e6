#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render endpoint — live preview for the editor.

GET /api/v1/render?content=...
GET /api/v1/render/highlight.css   — Pygments stylesheet for highlighted code
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from pygments.formatters import HtmlFormatter
from sqlalchemy.ext.asyncio import AsyncSession

from pagewiki.core.config import get_settings
from pagewiki.core.database import get_db
from pagewiki.schemas import (
    MAX_CONTENT_CHARS,
    FootnoteResponse, RenderResponse, TocEntryResponse,
)
from pagewiki.services.pages import render_content


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/render", tags=["render"])


# -----------------------------------------------------------------------------

@router.get("", response_model=RenderResponse)
async def render_preview(
    content: str     = Query(default="", max_length=MAX_CONTENT_CHARS),
    db: AsyncSession = Depends(get_db),
):
    """Rendered HTML plus links, TOC and footnotes for unsaved content."""
    result = await render_content(db, content)
    return RenderResponse(
        html=result.html,
        links=result.outgoing_links,
        toc=[TocEntryResponse.model_validate(e) for e in result.table_of_contents],
        footnotes=[FootnoteResponse.model_validate(f) for f in result.footnotes],
        categories=result.categories,
        tags=result.tags,
    )


# -----------------------------------------------------------------------------

@router.get("/highlight.css")
async def highlight_css():
    css = HtmlFormatter(style=get_settings().pygments_style).get_style_defs(".highlight")
    return Response(content=css, media_type="text/css; charset=utf-8")


# -----------------------------------------------------------------------------
