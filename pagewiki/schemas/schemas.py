#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for request validation and response serialisation.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


MAX_CONTENT_CHARS = 1_000_000


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Shared
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class OKResponse(BaseModel):
    ok: bool = True
    message: str = "success"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Rendering
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TocEntryResponse(BaseModel):
    level: int
    text: str
    anchor_id: str
    source_line_index: int

    model_config = {"from_attributes": True}


# -----------------------------------------------------------------------------

class FootnoteResponse(BaseModel):
    ordinal_number: int
    anchor_id: str
    back_reference_id: str
    content: str

    model_config = {"from_attributes": True}


# -----------------------------------------------------------------------------

class RenderResponse(BaseModel):
    html: str
    links: list[str]
    toc: list[TocEntryResponse]
    footnotes: list[FootnoteResponse]
    categories: list[str]
    tags: list[str]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Comments
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class CommentCreate(BaseModel):
    author: str = Field(..., min_length=1, max_length=128)
    content: str = Field(..., min_length=1, max_length=10_000)

    @field_validator("author", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


# -----------------------------------------------------------------------------

class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10_000)

    @field_validator("content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


# -----------------------------------------------------------------------------

class CommentResponse(BaseModel):
    id: str
    page_id: str
    author: str
    content: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PageSave(BaseModel):
    content: str = Field(default="", max_length=MAX_CONTENT_CHARS)
    # Extra tags on top of the #hashtags found in the content
    tags: list[str] = Field(default_factory=list, max_length=100)
    last_modified_by: Optional[str] = Field(None, max_length=128)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str]) -> list[str]:
        return [t.strip().lstrip("#") for t in v if t.strip().lstrip("#")]


# -----------------------------------------------------------------------------

class PageResponse(BaseModel):
    id: str
    title: str
    content: str
    rendered: Optional[str]
    tags: list[str]
    categories: list[str]
    links: list[str]
    toc: list[TocEntryResponse]
    comments: list[CommentResponse]
    last_modified_by: Optional[str]
    created_at: datetime
    last_modified: datetime


# -----------------------------------------------------------------------------

class PageSaveResponse(BaseModel):
    status: str            # "created" / "saved"
    page: PageResponse


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Images
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ImageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    data: str = Field(..., min_length=1)
    size: int = Field(..., ge=1)
    mime_type: str = Field(..., max_length=128)

    @field_validator("name")
    @classmethod
    def valid_name(cls, v: str) -> str:
        v = v.strip()
        if not v or any(c in v for c in "[]|\n"):
            raise ValueError("image name must not be blank or contain [ ] | or newlines")
        return v

    @field_validator("mime_type")
    @classmethod
    def image_mime(cls, v: str) -> str:
        if not v.startswith("image/"):
            raise ValueError("mime_type must be an image/* type")
        return v


# -----------------------------------------------------------------------------

class ImageResponse(BaseModel):
    id: str
    name: str
    data: str
    size: int
    mime_type: str
    uploaded_at: datetime

    model_config = {"from_attributes": True}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Search / index
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class SearchResult(BaseModel):
    title: str
    title_html: str        # title with the query <mark>ed
    snippet: str           # escaped content excerpt with the query <mark>ed
    title_match: bool
    last_modified: datetime


# -----------------------------------------------------------------------------

class IndexEntry(BaseModel):
    """A tag or category and the number of pages carrying it."""
    name: str
    count: int
