#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
ORM Models for PageWiki
=======================

Tables
------
pages     — wiki pages keyed by title, with derived link / tag / category metadata
comments  — reader comments attached to a page
images    — uploaded images, referenced from pages as ``![name]``

All primary keys are UUIDs.  Timestamps stored in UTC.
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pagewiki.core.database import Base


# ----------------------------------------------------------------------------

def _uuid_col(primary_key=False, nullable=False, **kw):
    """UUID column stored as String(36) — works for both SQLite and PostgreSQL."""
    return mapped_column(
        String(36),
        primary_key=primary_key,
        nullable=nullable,
        default=lambda: str(uuid.uuid4()),
        **kw,
    )


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Page(Base):
    __tablename__ = "pages"

    id:               Mapped[str]        = _uuid_col(primary_key=True)
    title:            Mapped[str]        = mapped_column(String(512), unique=True, nullable=False, index=True)
    content:          Mapped[str]        = mapped_column(Text, nullable=False, default="")
    # Derived from content on every save
    tags:             Mapped[list[str]]  = mapped_column(JSON, nullable=False, default=list)
    categories:       Mapped[list[str]]  = mapped_column(JSON, nullable=False, default=list)
    links:            Mapped[list[str]]  = mapped_column(JSON, nullable=False, default=list)
    # Cached rendered HTML, stamped with the renderer version (cleared on save)
    rendered:         Mapped[str | None] = mapped_column(Text, nullable=True)
    last_modified_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at:       Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)
    last_modified:    Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # Relationships
    comments: Mapped[list["Comment"]] = relationship(
        back_populates="page",
        cascade="all, delete-orphan",
        order_by="Comment.created_at.desc()",
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# comments
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Comment(Base):
    __tablename__ = "comments"

    id:         Mapped[str]      = _uuid_col(primary_key=True)
    page_id:    Mapped[str]      = mapped_column(String(36), ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    author:     Mapped[str]      = mapped_column(String(128), nullable=False)
    content:    Mapped[str]      = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    page: Mapped["Page"] = relationship(back_populates="comments")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# images
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Image(Base):
    __tablename__ = "images"

    id:          Mapped[str]      = _uuid_col(primary_key=True)
    name:        Mapped[str]      = mapped_column(String(255), unique=True, nullable=False, index=True)
    # data: URI, or bare base64 (turned into a data: URI when rendered)
    data:        Mapped[str]      = mapped_column(Text, nullable=False)
    size:        Mapped[int]      = mapped_column(Integer, nullable=False, default=0)
    mime_type:   Mapped[str]      = mapped_column(String(128), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    @property
    def data_uri(self) -> str:
        if self.data.startswith("data:"):
            return self.data
        return f"data:{self.mime_type};base64,{self.data}"
