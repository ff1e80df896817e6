#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for page comments."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import delete, func, select

from pagewiki.models import Comment, Page
from tests.conftest import save_page


# -----------------------------------------------------------------------------

async def _add(client: AsyncClient, title: str, author: str, content: str) -> dict:
    resp = await client.post(f"/api/v1/pages/{title}/comments", json={
        "author": author,
        "content": content,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_add_and_list_comments(client: AsyncClient):
    await save_page(client, "Home", "text")
    first = await _add(client, "Home", "alice", "first!")
    second = await _add(client, "Home", "bob", "second")

    resp = await client.get("/api/v1/pages/Home/comments")
    assert resp.status_code == 200
    ids = [c["id"] for c in resp.json()]
    assert set(ids) == {first["id"], second["id"]}
    assert first["author"] == "alice"


@pytest.mark.asyncio
async def test_comments_included_in_page(client: AsyncClient):
    await save_page(client, "Home", "text")
    await _add(client, "Home", "alice", "hello")
    page = (await client.get("/api/v1/pages/Home")).json()
    assert [c["content"] for c in page["comments"]] == ["hello"]


@pytest.mark.asyncio
async def test_comment_on_missing_page(client: AsyncClient):
    resp = await client.post("/api/v1/pages/Nope/comments", json={
        "author": "alice", "content": "hi",
    })
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_blank_comment_rejected(client: AsyncClient):
    await save_page(client, "Home", "text")
    resp = await client.post("/api/v1/pages/Home/comments", json={
        "author": "alice", "content": "   ",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_update_comment(client: AsyncClient):
    await save_page(client, "Home", "text")
    comment = await _add(client, "Home", "alice", "typo")
    resp = await client.put(f"/api/v1/comments/{comment['id']}", json={"content": "fixed"})
    assert resp.status_code == 200
    assert resp.json()["content"] == "fixed"


@pytest.mark.asyncio
async def test_update_missing_comment(client: AsyncClient):
    resp = await client.put("/api/v1/comments/nope", json={"content": "x"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_comment(client: AsyncClient):
    await save_page(client, "Home", "text")
    comment = await _add(client, "Home", "alice", "bye")
    resp = await client.delete(f"/api/v1/comments/{comment['id']}")
    assert resp.status_code == 200
    assert (await client.get("/api/v1/pages/Home/comments")).json() == []


@pytest.mark.asyncio
async def test_deleting_page_removes_comments(client: AsyncClient, db_session):
    await save_page(client, "Home", "text")
    await _add(client, "Home", "alice", "one")
    await _add(client, "Home", "bob", "two")

    await client.delete("/api/v1/pages/Home")

    count = await db_session.scalar(select(func.count()).select_from(Comment))
    assert count == 0


@pytest.mark.asyncio
async def test_bulk_page_delete_cascades_to_comments(client: AsyncClient, db_session):
    await save_page(client, "Home", "text")
    await _add(client, "Home", "alice", "one")

    await db_session.execute(delete(Page).where(Page.title == "Home"))
    await db_session.commit()

    count = await db_session.scalar(select(func.count()).select_from(Comment))
    assert count == 0


# -----------------------------------------------------------------------------
