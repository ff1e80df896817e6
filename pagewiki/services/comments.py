#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Comment service: reader comments attached to a page.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pagewiki.models import Comment
from pagewiki.schemas import CommentCreate, CommentUpdate
from .pages import get_page


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

async def list_comments(db: AsyncSession, title: str) -> list[Comment]:
    """Comments on page *title*, newest first."""
    page = await get_page(db, title)
    result = await db.execute(
        select(Comment)
        .where(Comment.page_id == page.id)
        .order_by(Comment.created_at.desc())
    )
    return list(result.scalars().all())


# -----------------------------------------------------------------------------

async def add_comment(db: AsyncSession, title: str, data: CommentCreate) -> Comment:
    page = await get_page(db, title)
    comment = Comment(page_id=page.id, author=data.author, content=data.content)
    db.add(comment)
    await db.flush()
    await db.refresh(comment)
    log.info("Comment %s added to %r by %s", comment.id, page.title, comment.author)
    return comment


# -----------------------------------------------------------------------------

async def get_comment(db: AsyncSession, comment_id: str) -> Comment:
    comment = await db.get(Comment, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail=f"Comment '{comment_id}' not found")
    return comment


async def update_comment(db: AsyncSession, comment_id: str, data: CommentUpdate) -> Comment:
    comment = await get_comment(db, comment_id)
    comment.content = data.content
    await db.flush()
    await db.refresh(comment)
    return comment


async def delete_comment(db: AsyncSession, comment_id: str) -> None:
    comment = await get_comment(db, comment_id)
    await db.delete(comment)
    await db.flush()
    log.info("Comment %s deleted", comment_id)
