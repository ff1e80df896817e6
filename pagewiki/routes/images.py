#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Images router
=============
GET    /api/v1/images          — list images
POST   /api/v1/images          — upload (JSON: name, data, size, mime_type)
GET    /api/v1/images/{name}   — fetch one image
DELETE /api/v1/images/{name}   — delete
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pagewiki.core.database import get_db
from pagewiki.schemas import ImageCreate, ImageResponse, OKResponse
from pagewiki.services import images as image_svc


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/images", tags=["images"])


# -----------------------------------------------------------------------------

@router.get("", response_model=list[ImageResponse])
async def list_images(db: AsyncSession = Depends(get_db)):
    return await image_svc.list_images(db)


@router.post("", response_model=ImageResponse, status_code=201)
async def upload_image(data: ImageCreate, db: AsyncSession = Depends(get_db)):
    return await image_svc.save_image(db, data)


@router.get("/{name}", response_model=ImageResponse)
async def get_image(name: str, db: AsyncSession = Depends(get_db)):
    return await image_svc.get_image(db, name)


@router.delete("/{name}", response_model=OKResponse)
async def delete_image(name: str, db: AsyncSession = Depends(get_db)):
    await image_svc.delete_image(db, name)
    return OKResponse(message=f"Image '{name}' deleted")


# -----------------------------------------------------------------------------
