#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Image service
=============
Images are stored in the database as data URIs (or bare base64) and
referenced from page content as ``![name]`` / ``![name|caption]``.

Rendering is synchronous, so :func:`image_lookup_for` preloads every image a
page references into a dict before the renderer runs.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pagewiki.core.config import get_settings
from pagewiki.models import Image, Page
from pagewiki.schemas import ImageCreate
from .renderer import ImageLookup, ResolvedImage, extract_image_names


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

async def _find_image(db: AsyncSession, name: str) -> Optional[Image]:
    result = await db.execute(select(Image).where(Image.name == name))
    return result.scalar_one_or_none()


async def _invalidate_rendered(db: AsyncSession) -> None:
    """A new or removed image can change any page's output."""
    # last_modified is pinned so the onupdate hook does not fire
    await db.execute(update(Page).values(rendered=None, last_modified=Page.last_modified))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CRUD
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def save_image(db: AsyncSession, data: ImageCreate) -> Image:
    settings = get_settings()
    if data.size > settings.max_image_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Image exceeds maximum size of {settings.max_image_bytes} bytes",
        )

    if await _find_image(db, data.name):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Image '{data.name}' already exists",
        )

    image = Image(
        name=data.name,
        data=data.data,
        size=data.size,
        mime_type=data.mime_type,
    )
    db.add(image)
    await _invalidate_rendered(db)
    await db.flush()
    await db.refresh(image)

    log.info("Image uploaded: %s (%d bytes, %s)", image.name, image.size, image.mime_type)
    return image


# -----------------------------------------------------------------------------

async def list_images(db: AsyncSession) -> list[Image]:
    result = await db.execute(select(Image).order_by(Image.uploaded_at.desc()))
    return list(result.scalars().all())


# -----------------------------------------------------------------------------

async def get_image(db: AsyncSession, name: str) -> Image:
    image = await _find_image(db, name)
    if not image:
        raise HTTPException(status_code=404, detail=f"Image '{name}' not found")
    return image


# -----------------------------------------------------------------------------

async def delete_image(db: AsyncSession, name: str) -> None:
    image = await get_image(db, name)
    await db.delete(image)
    await _invalidate_rendered(db)
    await db.flush()
    log.info("Image deleted: %s", name)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Renderer integration
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def image_lookup_for(db: AsyncSession, content: Optional[str]) -> ImageLookup:
    """Return a synchronous ``name -> ResolvedImage`` lookup for *content*."""
    names = extract_image_names(content)
    resolved: dict[str, ResolvedImage] = {}
    if names:
        result = await db.execute(select(Image).where(Image.name.in_(names)))
        for image in result.scalars():
            resolved[image.name] = ResolvedImage(data_uri=image.data_uri)
    return resolved.get
