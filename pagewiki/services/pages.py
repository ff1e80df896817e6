#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page service
============
Upsert / read / delete for wiki pages keyed by title, plus the indexes
derived from page content: backlinks, tags, categories and search.

Every save re-derives the page's outgoing links, tags and categories from
its content and clears the cached rendered HTML.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import logging
import re
from collections import Counter
from typing import Optional
from urllib.parse import quote

from fastapi import HTTPException
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pagewiki.core.config import get_settings
from pagewiki.models import Page
from pagewiki.schemas import PageSave
from .images import image_lookup_for
from .renderer import (
    RENDERER_VERSION,
    MarkupRenderer,
    RenderResult,
    extract_categories,
    extract_tags,
    get_linked_pages,
    highlight_search_term,
)


log = logging.getLogger(__name__)

_CACHE_STAMP = f"<!--rv:{RENDERER_VERSION}-->"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def clean_title(title: str) -> str:
    title = " ".join(title.split())
    if not title:
        raise HTTPException(status_code=400, detail="Page title must not be blank")
    return title


def page_href(title: str) -> str:
    """Link encoder: internal page title to its URL."""
    return get_settings().page_url_prefix + quote(title, safe="")


def _merge_unique(*groups: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for group in groups:
        for item in group:
            seen.setdefault(item, None)
    return list(seen)


async def _find_page(db: AsyncSession, title: str, with_comments: bool = False) -> Optional[Page]:
    stmt = select(Page).where(Page.title == title)
    if with_comments:
        stmt = stmt.options(selectinload(Page.comments)).execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Rendering and the render cache
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def render_content(db: AsyncSession, content: Optional[str]) -> RenderResult:
    """Render *content* with images resolved from the database."""
    settings = get_settings()
    renderer = MarkupRenderer(
        image_lookup=await image_lookup_for(db, content),
        link_encoder=page_href,
        highlight_code=settings.highlight_code,
    )
    return renderer.render_page(content)


def is_cache_valid(rendered: Optional[str]) -> bool:
    return bool(rendered) and rendered.startswith(_CACHE_STAMP)


async def get_rendered(db: AsyncSession, page: Page) -> str:
    """Cached HTML for *page*, re-rendering when stale or missing."""
    if is_cache_valid(page.rendered):
        return page.rendered[len(_CACHE_STAMP):]

    result = await render_content(db, page.content)
    # Caching is not an edit: keep last_modified as it is
    await db.execute(
        update(Page)
        .where(Page.id == page.id)
        .values(rendered=_CACHE_STAMP + result.html, last_modified=Page.last_modified)
    )
    log.debug("Rendered page %r (%d chars)", page.title, len(result.html))
    return result.html


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CRUD
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def list_page_titles(db: AsyncSession) -> list[str]:
    result = await db.execute(select(Page.title).order_by(Page.title))
    return list(result.scalars().all())


# -----------------------------------------------------------------------------

async def get_page(db: AsyncSession, title: str, with_comments: bool = False) -> Page:
    page = await _find_page(db, clean_title(title), with_comments=with_comments)
    if not page:
        raise HTTPException(status_code=404, detail=f"Page '{title}' not found")
    return page


# -----------------------------------------------------------------------------

async def save_page(db: AsyncSession, title: str, data: PageSave) -> tuple[Page, bool]:
    """Create or update the page *title*.  Returns (page, created)."""
    title = clean_title(title)
    page = await _find_page(db, title)
    created = page is None
    if created:
        page = Page(title=title)
        db.add(page)

    page.content          = data.content
    page.tags             = _merge_unique(extract_tags(data.content), data.tags)
    page.categories       = extract_categories(data.content)
    page.links            = [t for t in get_linked_pages(data.content) if t != title]
    page.rendered         = None   # invalidate cache
    page.last_modified_by = data.last_modified_by

    await db.flush()
    page = await get_page(db, title, with_comments=True)
    log.info(
        "Page %s: %r (%d chars, %d links)",
        "created" if created else "saved", title, len(page.content), len(page.links),
    )
    return page, created


# -----------------------------------------------------------------------------

async def delete_page(db: AsyncSession, title: str) -> None:
    page = await get_page(db, title, with_comments=True)
    await db.delete(page)
    await db.flush()
    log.info("Page deleted: %r", page.title)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Indexes
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def get_backlinks(db: AsyncSession, title: str) -> list[str]:
    """Titles of pages whose content links to *title*."""
    title = clean_title(title)
    result = await db.execute(select(Page.title, Page.links).order_by(Page.title))
    return [row.title for row in result if title in (row.links or [])]


# -----------------------------------------------------------------------------

async def get_all_tags(db: AsyncSession) -> list[tuple[str, int]]:
    result = await db.execute(select(Page.tags))
    counts = Counter(tag for tags in result.scalars() for tag in (tags or []))
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))


async def get_pages_with_tag(db: AsyncSession, tag: str) -> list[str]:
    tag = tag.lstrip("#")
    result = await db.execute(select(Page.title, Page.tags).order_by(Page.title))
    return [row.title for row in result if tag in (row.tags or [])]


# -----------------------------------------------------------------------------

async def get_all_categories(db: AsyncSession) -> list[tuple[str, int]]:
    result = await db.execute(select(Page.categories))
    counts = Counter(c for cats in result.scalars() for c in (cats or []))
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))


async def get_pages_in_category(db: AsyncSession, name: str) -> list[str]:
    result = await db.execute(select(Page.title, Page.categories).order_by(Page.title))
    return [row.title for row in result if name in (row.categories or [])]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Search
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _snippet(content: str, query: str, width: int) -> str:
    """Escaped excerpt of *content* around the first match of *query*."""
    flat = " ".join(content.split())
    m = re.search(re.escape(query), flat, re.IGNORECASE)
    if not m:
        excerpt = flat[:width]
        suffix = "…" if len(flat) > width else ""
        return _html.escape(excerpt) + suffix

    start = max(m.start() - width // 2, 0)
    end   = min(m.end() + width // 2, len(flat))
    prefix = "…" if start > 0 else ""
    suffix = "…" if end < len(flat) else ""
    return prefix + _html.escape(flat[start:end]) + suffix


async def search_pages(db: AsyncSession, query: str, limit: int = 50) -> list[dict]:
    """Title and content search; title matches first, then most recent."""
    query = query.strip()
    if not query:
        return []

    like = f"%{query}%"
    result = await db.execute(
        select(Page)
        .where(or_(Page.title.ilike(like), Page.content.ilike(like)))
        .order_by(Page.last_modified.desc())
    )
    pages = list(result.scalars().all())

    # ilike is ASCII-only case folding on SQLite; re-check in Python
    needle = query.lower()
    width = get_settings().search_snippet_chars
    hits = []
    for page in pages:
        title_match = needle in page.title.lower()
        if not title_match and needle not in page.content.lower():
            continue
        hits.append({
            "title":         page.title,
            "title_html":    highlight_search_term(_html.escape(page.title), query),
            "snippet":       highlight_search_term(_snippet(page.content, query, width), query),
            "title_match":   title_match,
            "last_modified": page.last_modified,
        })

    hits.sort(key=lambda h: not h["title_match"])
    return hits[:limit]
