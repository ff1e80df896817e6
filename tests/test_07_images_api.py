#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for image upload and image references in pages."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import base64

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from pagewiki.models import Image, Page
from tests.conftest import PNG_BYTES, PNG_DATA_URI, save_page, upload_image


# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_upload_and_get_image(client: AsyncClient):
    data = await upload_image(client, "pixel")
    assert data["name"] == "pixel"
    assert data["mime_type"] == "image/png"

    resp = await client.get("/api/v1/images/pixel")
    assert resp.status_code == 200
    assert resp.json()["data"] == PNG_DATA_URI


@pytest.mark.asyncio
async def test_list_images(client: AsyncClient):
    await upload_image(client, "one")
    await upload_image(client, "two")
    resp = await client.get("/api/v1/images")
    assert resp.status_code == 200
    assert {i["name"] for i in resp.json()} == {"one", "two"}


@pytest.mark.asyncio
async def test_duplicate_image_name(client: AsyncClient):
    await upload_image(client, "pixel")
    resp = await client.post("/api/v1/images", json={
        "name": "pixel", "data": PNG_DATA_URI, "size": 10, "mime_type": "image/png",
    })
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_non_image_mime_rejected(client: AsyncClient):
    resp = await client.post("/api/v1/images", json={
        "name": "doc", "data": "AAAA", "size": 3, "mime_type": "application/pdf",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_bracket_in_name_rejected(client: AsyncClient):
    resp = await client.post("/api/v1/images", json={
        "name": "a]b", "data": "AAAA", "size": 3, "mime_type": "image/png",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_oversized_image_rejected(client: AsyncClient):
    resp = await client.post("/api/v1/images", json={
        "name": "big", "data": "AAAA", "size": 50 * 1024 * 1024, "mime_type": "image/png",
    })
    assert resp.status_code == 413


@pytest.mark.asyncio
async def test_delete_image(client: AsyncClient):
    await upload_image(client, "pixel")
    resp = await client.delete("/api/v1/images/pixel")
    assert resp.status_code == 200
    assert (await client.get("/api/v1/images/pixel")).status_code == 404


@pytest.mark.asyncio
async def test_get_missing_image(client: AsyncClient):
    assert (await client.get("/api/v1/images/nope")).status_code == 404


# ── Images in pages ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_page_renders_uploaded_image(client: AsyncClient):
    await upload_image(client, "pixel")
    page = await save_page(client, "Gallery", "![pixel|A pixel]")
    assert f'<img src="{PNG_DATA_URI}" alt="pixel"' in page["rendered"]
    assert "A pixel" in page["rendered"]


@pytest.mark.asyncio
async def test_bare_base64_becomes_data_uri(client: AsyncClient):
    raw = base64.b64encode(PNG_BYTES).decode()
    await upload_image(client, "raw", data=raw)
    page = await save_page(client, "Gallery", "![raw]")
    assert f'src="data:image/png;base64,{raw}"' in page["rendered"]


@pytest.mark.asyncio
async def test_page_shows_missing_image_marker(client: AsyncClient):
    page = await save_page(client, "Gallery", "![ghost]")
    assert 'class="image-missing"' in page["rendered"]
    assert "ghost" in page["rendered"]


@pytest.mark.asyncio
async def test_upload_invalidates_cached_renders(client: AsyncClient, db_session):
    page = await save_page(client, "Gallery", "![late]")
    assert 'class="image-missing"' in page["rendered"]

    await upload_image(client, "late")

    cached = await db_session.scalar(select(Page.rendered).where(Page.title == "Gallery"))
    assert cached is None

    resp = await client.get("/api/v1/pages/Gallery")
    assert "<img" in resp.json()["rendered"]


@pytest.mark.asyncio
async def test_image_row_stored(client: AsyncClient, db_session):
    await upload_image(client, "stored")
    image = await db_session.scalar(select(Image).where(Image.name == "stored"))
    assert image is not None
    assert image.size == len(PNG_BYTES)


# -----------------------------------------------------------------------------
