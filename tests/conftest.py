#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for PageWiki tests.
Uses an in-memory SQLite database so no external services are needed.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import base64

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import pagewiki.models  # noqa: F401  (registers tables on Base.metadata)
from pagewiki.core.database import Base, get_db, make_engine
from pagewiki.main import create_app


# -----------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


# -----------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = make_engine(TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session_factory(db_engine):
    """Shared sessionmaker — both client and db_session use this."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(db_session_factory):
    """Direct DB session for test setup and inspection."""
    async with db_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_engine, db_session_factory):
    """HTTP test client wired to an isolated in-memory DB."""
    async def override_get_db():
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
# Helper functions for tests
# -----------------------------------------------------------------------------

async def save_page(client: AsyncClient, title: str, content: str,
                    tags: list[str] | None = None,
                    author: str | None = None) -> dict:
    body: dict = {"content": content}
    if tags is not None:
        body["tags"] = tags
    if author is not None:
        body["last_modified_by"] = author
    resp = await client.put(f"/api/v1/pages/{title}", json=body)
    assert resp.status_code in (200, 201), resp.text
    return resp.json()["page"]


async def upload_image(client: AsyncClient, name: str = "pixel",
                       data: str = PNG_DATA_URI,
                       mime_type: str = "image/png") -> dict:
    resp = await client.post("/api/v1/images", json={
        "name": name,
        "data": data,
        "size": len(PNG_BYTES),
        "mime_type": mime_type,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


# -----------------------------------------------------------------------------
