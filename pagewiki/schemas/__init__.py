from pagewiki.schemas.schemas import (
    OKResponse,
    TocEntryResponse, FootnoteResponse, RenderResponse,
    CommentCreate, CommentUpdate, CommentResponse,
    PageSave, PageResponse, PageSaveResponse,
    ImageCreate, ImageResponse,
    SearchResult, IndexEntry,
    MAX_CONTENT_CHARS,
)

__all__ = [
    "OKResponse",
    "TocEntryResponse", "FootnoteResponse", "RenderResponse",
    "CommentCreate", "CommentUpdate", "CommentResponse",
    "PageSave", "PageResponse", "PageSaveResponse",
    "ImageCreate", "ImageResponse",
    "SearchResult", "IndexEntry",
    "MAX_CONTENT_CHARS",
]
