#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
PageWiki — FastAPI application factory
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select

from pagewiki.core.config import get_settings
from pagewiki.core.database import (
    create_all_tables,
    dispose_engine,
    get_session_factory,
    init_db,
)
from pagewiki.routes import comments, images, index, pages, render, search


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

MAIN_PAGE_CONTENT = """\
= 위키에 오신 것을 환영합니다 =

이곳은 위키의 대문입니다. 편집 버튼으로 이 페이지를 고치거나 새 페이지를 만들 수 있습니다.

[목차]

== 시작하기 ==

- **편집** 버튼을 클릭하여 이 페이지를 수정하세요
- 검색 창을 사용하여 페이지를 빠르게 찾으세요
- 다른 페이지에 링크하려면 [[소개]] 처럼 쓰세요

== 위키 문법 ==

=== 텍스트 서식 ===
- **굵게** 또는 --굵게--, *기울임*, ~~취소선~~
- 각주[* 각주 내용은 문서 끝에 모입니다]
- 태그: #도움말

=== 링크 ===
- 내부 링크: [[소개]], [[소개|소개 페이지]]
- 외부 링크: [구글](https://google.com)

=== 기타 ===
- YouTube 동영상: `[[htp://yt.VIDEO_ID]]`
- 이미지: `![파일명|설명]`

[[분류:도움말]]
"""


# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    init_db()
    await create_all_tables()   # safe: CREATE TABLE IF NOT EXISTS
    await _seed_defaults()
    yield
    await dispose_engine()


# -----------------------------------------------------------------------------

async def _seed_defaults() -> None:
    """Create the main page if it doesn't exist yet."""
    from pagewiki.models import Page
    from pagewiki.schemas import PageSave
    from pagewiki.services.pages import save_page

    settings = get_settings()
    factory = get_session_factory()

    async with factory() as session:
        try:
            result = await session.execute(
                select(Page.id).where(Page.title == settings.main_page_title)
            )
            if result.scalar_one_or_none() is None:
                await save_page(
                    session,
                    settings.main_page_title,
                    PageSave(content=MAIN_PAGE_CONTENT, tags=["도움말"]),
                )
                await session.commit()
                log.info("Seeded main page %r", settings.main_page_title)
        except Exception:
            await session.rollback()
            raise


# -----------------------------------------------------------------------------

def create_app() -> FastAPI:
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="A personal wiki with wiki-style and Markdown markup.",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # ── CORS ──────────────────────────────────────────────────────────────

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── API routers ───────────────────────────────────────────────────────

    prefix = "/api/v1"

    # before pages: /pages/{title}/comments must not reach the page catch-all
    app.include_router(comments.router, prefix=prefix)
    app.include_router(pages.router,    prefix=prefix)
    app.include_router(images.router,   prefix=prefix)
    app.include_router(render.router,   prefix=prefix)
    app.include_router(search.router,   prefix=prefix)
    app.include_router(index.router,    prefix=prefix)

    # ── Global exception handlers ─────────────────────────────────────────

    @app.exception_handler(404)
    async def not_found(request: Request, exc):
        detail = getattr(exc, "detail", None)
        if not request.url.path.startswith("/api/") or detail in (None, "Not Found"):
            detail = "Not found"
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": detail},
        )

    @app.exception_handler(500)
    async def server_error(request: Request, exc):
        log.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Health check ──────────────────────────────────────────────────────

    @app.get("/api/health", tags=["system"])
    async def health():
        return {"status": "ok", "version": settings.app_version, "app": settings.app_name}

    return app


# -----------------------------------------------------------------------------

app = create_app()


# -----------------------------------------------------------------------------

def main() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "pagewiki.main:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


# -----------------------------------------------------------------------------

if __name__ == "__main__":
    main()
