#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Comments router
===============
GET    /api/v1/pages/{title}/comments    — list comments, newest first
POST   /api/v1/pages/{title}/comments    — add a comment
PUT    /api/v1/comments/{comment_id}     — edit a comment
DELETE /api/v1/comments/{comment_id}     — delete a comment
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pagewiki.core.database import get_db
from pagewiki.schemas import CommentCreate, CommentResponse, CommentUpdate, OKResponse
from pagewiki.services import comments as comment_svc


# -----------------------------------------------------------------------------

router = APIRouter(tags=["comments"])


# -----------------------------------------------------------------------------

@router.get("/pages/{title:path}/comments", response_model=list[CommentResponse])
async def list_comments(title: str, db: AsyncSession = Depends(get_db)):
    return await comment_svc.list_comments(db, title)


@router.post("/pages/{title:path}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(title: str, data: CommentCreate, db: AsyncSession = Depends(get_db)):
    return await comment_svc.add_comment(db, title, data)


# -----------------------------------------------------------------------------

@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(comment_id: str, data: CommentUpdate, db: AsyncSession = Depends(get_db)):
    return await comment_svc.update_comment(db, comment_id, data)


@router.delete("/comments/{comment_id}", response_model=OKResponse)
async def delete_comment(comment_id: str, db: AsyncSession = Depends(get_db)):
    await comment_svc.delete_comment(db, comment_id)
    return OKResponse(message="Comment deleted")


# -----------------------------------------------------------------------------
