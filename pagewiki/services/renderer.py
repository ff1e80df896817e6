#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Markup renderer
===============
Renders wiki page content to HTML.

The page dialect mixes Markdown with MediaWiki / Namuwiki syntax:

    = H1 =  /  == H2 ==  / ... / ===== H5 =====   wiki headers
    # H1  /  ## H2  / ... / ###### H6              Markdown headers
    [[분류:Name]]                                   category declaration
    #tag  /  #tag with spaces                       hashtags
    [목차]                                          table of contents
    text[* footnote]                                footnotes
    --bold--  /  ~~strike~~                         wiki emphasis
    **bold**  /  *italic*  /  `code`  /  ```fence```
    ---                                             <hr>
    ![image]  /  ![image|caption]                   stored images
    > quote                                         blockquote
    [[htp://yt.VIDEO_ID]]                           video embed
    [[Page]]  /  [[Page|Display]]                   internal links
    [text](Page)  /  [text](https://...)            Markdown links
    - item  /  1. item                              lists

Rendering is a fixed sequence of regex passes over the page text.  Pass
order matters: later passes must not re-interpret HTML emitted by earlier
passes, and several syntaxes overlap textually (``**bold**`` / ``*italic*``,
``= Title =`` / ``# Title``).

The renderer never raises for string input.  Missing images and unusable
embeds degrade to visible inline placeholders; malformed markup stays
literal text.  Literal HTML in the source passes through untouched.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional
from urllib.parse import quote

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound


log = logging.getLogger(__name__)


# Bump this whenever the render pipeline changes so stale cached HTML is
# discarded and re-rendered on next page view.
RENDERER_VERSION = 2

EMPTY_PAGE_HTML = (
    '<p><em>이 페이지는 비어있습니다. 편집 버튼을 클릭하여 내용을 추가하세요.</em></p>'
)
CATEGORY_PREFIX = "분류:"
TOC_TITLE = "목차"
FOOTNOTES_TITLE = "각주"
BACKREF_TITLE = "본문으로 돌아가기"
YOUTUBE_EMBED_URL = "https://www.youtube-nocookie.com/embed/{}?rel=0&amp;modestbranding=1"


# -----------------------------------------------------------------------------
# Result types
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class TocEntry:
    level: int
    text: str
    anchor_id: str
    source_line_index: int


@dataclass(frozen=True)
class Footnote:
    ordinal_number: int
    anchor_id: str
    back_reference_id: str
    content: str


@dataclass(frozen=True)
class ImageReference:
    """``![name]`` or ``![name|caption]`` as written in the page."""
    name: str
    caption: str = ""

    @classmethod
    def parse(cls, ref: str) -> "ImageReference":
        parts = ref.split("|", 1)
        caption = parts[1].strip() if len(parts) > 1 else ""
        return cls(name=parts[0].strip(), caption=caption)


@dataclass(frozen=True)
class ResolvedImage:
    data_uri: str


@dataclass
class RenderResult:
    """HTML for one page plus the navigation data collected while rendering it."""
    html: str
    outgoing_links: list[str] = field(default_factory=list)
    table_of_contents: list[TocEntry] = field(default_factory=list)
    footnotes: list[Footnote] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


ImageLookup = Callable[[str], Optional[ResolvedImage]]
LinkEncoder = Callable[[str], str]


# -----------------------------------------------------------------------------
# Escaping / slug helpers
# -----------------------------------------------------------------------------

def escape_html(text: str) -> str:
    """Escape ``& < > " '`` — used for code and plain text."""
    return _html.escape(text, quote=True)


def escape_attr(text: str) -> str:
    """Escape an attribute value without double-escaping existing entities."""
    return _html.escape(_html.unescape(text), quote=True)


_STRIP_TAGS_RE = re.compile(r"<[^>]+>")


def generate_id(text: str) -> str:
    """Convert heading text to an anchor id."""
    text = _html.unescape(_STRIP_TAGS_RE.sub("", text)).lower()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"\s+", "-", text.strip())
    return text.strip("-") or "section"


def default_link_encoder(page_title: str) -> str:
    return "/" + quote(page_title, safe="")


def extract_text(html: str) -> str:
    """Plain text of rendered HTML, whitespace collapsed (search snippets)."""
    text = _html.unescape(_STRIP_TAGS_RE.sub(" ", html or ""))
    return re.sub(r"\s+", " ", text).strip()


# Stray & < > in page text, leaving literal tags, entities and the leading
# ">" of blockquote lines alone.
_STRAY_RE = re.compile(
    r"(<[A-Za-z/!][^<>]*>)"
    r"|(^>(?=[ \t]))"
    r"|(&(?:#\d+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);)"
    r"|([&<>])",
    re.MULTILINE,
)


def _escape_stray(text: str) -> str:
    def _sub(m: re.Match) -> str:
        if m.group(4):
            return escape_html(m.group(4))
        return m.group(0)
    return _STRAY_RE.sub(_sub, text)


# -----------------------------------------------------------------------------
# Code stash
# -----------------------------------------------------------------------------

_FENCE_RE       = re.compile(r"```(?:([\w+#.-]+)[ \t]*(?=\n))?(.*?)```", re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`([^`\n]+)`")
_BLOCK_TOKEN    = "\x00B{}\x00"
_INLINE_TOKEN   = "\x00I{}\x00"
_TOKEN_RE       = re.compile(r"\x00[BI](\d+)\x00")
_BLOCK_LINE_RE  = re.compile(r"\x00B\d+\x00")


def _highlight_code(code: str, lang: str) -> str:
    """Highlight *code* using Pygments.  Unknown languages fall back to plain text."""
    try:
        lexer = get_lexer_by_name(lang, stripall=True)
    except ClassNotFound:
        lexer = TextLexer()
    return highlight(code, lexer, HtmlFormatter(cssclass="highlight")).rstrip("\n")


def _blank_code(text: str) -> str:
    """Blank out code in *text*, keeping its line count (for scans)."""
    text = _FENCE_RE.sub(lambda m: "\n" * m.group(0).count("\n"), text)
    return _INLINE_CODE_RE.sub(_INLINE_TOKEN.format(0), text)


# -----------------------------------------------------------------------------
# Patterns
# -----------------------------------------------------------------------------

_WIKI_HEADER_RE   = re.compile(r"^(={1,5})[ \t]*(.+?)[ \t]*\1[ \t]*$")
_ATX_HEADER_RE    = re.compile(r"^(#{1,6})[ \t]+(.+?)[ \t]*$")
_CATEGORY_RE      = re.compile(r"\[\[" + CATEGORY_PREFIX + r"([^\]]+)\]\]")
_TAG_RE           = re.compile(r"(?<![\w&#/\"'=])(?<!\]\()#(\w+(?: \w+)*)")
_TAG_SPLIT_RE     = re.compile(r"(<[^>]*>)")
_TOC_MARKER_RE    = re.compile(r"\[목차\]")
_FOOTNOTE_RE      = re.compile(r"([^\[\s]*)\[\*[ \t]*([^\]\n]+)\]")
_WIKI_BOLD_RE     = re.compile(r"(?<![!\-])--([^\-\n]+)--(?![\->])")
_STRIKE_RE        = re.compile(r"~~([^~\n]+)~~")
_HR_RE            = re.compile(r"^-{3,}[ \t]*$", re.MULTILINE)
_IMAGE_RE         = re.compile(r"!\[([^\]\n]+)\]")
_BOLD_RE          = re.compile(r"\*\*([^*\n]+)\*\*")
_ITALIC_RE        = re.compile(r"\*([^*\n]+)\*")
_QUOTE_RE         = re.compile(r"^>[ \t]+(.+)$")
_EMBED_RE         = re.compile(r"\[\[(?:htp://yt\.([^\]|\n]*)|yt://htp\.([^\]|\n]*))\]\]")
_EMBED_PREFIXES   = ("htp://yt.", "yt://htp.")
_VIDEO_ID_DROP_RE = re.compile(r"[^A-Za-z0-9_-]")
_WIKILINK_RE      = re.compile(r"\[\[([^|\]\n]+)(?:\|([^\]\n]+))?\]\]")
_MDLINK_RE        = re.compile(r"\[([^\]\n]+)\]\(([^)\n]+)\)")
_UL_ITEM_RE       = re.compile(r"^\s*-\s+(.+)$")
_OL_ITEM_RE       = re.compile(r"^\s*\d+\.\s+(.+)$")
_OL_MARKER_RE     = re.compile(r"^\d+\. ")

_BLOCK_TAG_RE = re.compile(
    r"^<(?:!--|/?(?:h[1-6]|div|p|ul|ol|li|blockquote|pre|hr|table|thead|tbody|"
    r"tr|td|th|figure|iframe|section|nav|aside|header|footer|dl|dt|dd|details|summary)\b)",
    re.IGNORECASE,
)


def _is_external(target: str) -> bool:
    return "://" in target or target.startswith("#")


def _sanitize_video_id(raw: str) -> str:
    return _VIDEO_ID_DROP_RE.sub("", raw)


def _scan_headings(text: str) -> list[tuple[int, int, str]]:
    """(line index, level, heading text) for every header line, in source order."""
    found: list[tuple[int, int, str]] = []
    for index, line in enumerate(text.split("\n")):
        m = _ATX_HEADER_RE.match(line) or _WIKI_HEADER_RE.match(line)
        if m:
            found.append((index, len(m.group(1)), m.group(2).strip()))
    return found


def _strip_footnotes(markup: str) -> str:
    return _FOOTNOTE_RE.sub(r"\1", markup)


def _allocate_anchors(headings: list[tuple[int, int, str]]) -> list[TocEntry]:
    """Build TOC entries; repeated ids get ``-2``, ``-3`` ... suffixes."""
    used: set[str] = set()
    entries: list[TocEntry] = []
    for index, level, markup in headings:
        # ids and TOC text ignore code spans and footnotes
        text = _TOKEN_RE.sub("", _strip_footnotes(markup)).strip()
        base = anchor = generate_id(text)
        n = 1
        while anchor in used:
            n += 1
            anchor = f"{base}-{n}"
        used.add(anchor)
        entries.append(TocEntry(
            level=level,
            text=_html.unescape(text),
            anchor_id=anchor,
            source_line_index=index,
        ))
    return entries


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


# -----------------------------------------------------------------------------
# Per-call state
# -----------------------------------------------------------------------------

@dataclass
class _RenderState:
    stash:          list[str]           = field(default_factory=list)
    toc:            list[TocEntry]      = field(default_factory=list)
    heading_markup: dict[int, str]      = field(default_factory=dict)
    anchors:        dict[int, str]      = field(default_factory=dict)
    footnotes:      list[Footnote]      = field(default_factory=list)
    categories:     list[str]           = field(default_factory=list)
    tags:           list[str]           = field(default_factory=list)

    def anchor_for(self, line_index: int, text: str) -> str:
        return self.anchors.get(line_index) or generate_id(text)


# -----------------------------------------------------------------------------
# Renderer
# -----------------------------------------------------------------------------

class MarkupRenderer:
    """
    Converts one page's raw text into display HTML and derived metadata.

    Parameters
    ----------
    image_lookup   : ``name -> ResolvedImage | None``.  Without one, image
                     syntax is left as literal text.
    link_encoder   : ``page title -> href`` for internal links.
    highlight_code : highlight fenced blocks that name a language with Pygments.
    """

    def __init__(
        self,
        image_lookup: ImageLookup | None = None,
        link_encoder: LinkEncoder | None = None,
        highlight_code: bool = True,
    ) -> None:
        self.image_lookup   = image_lookup
        self.link_encoder   = link_encoder or default_link_encoder
        self.highlight_code = highlight_code

    # ── public API ────────────────────────────────────────────────────────

    def render(self, content: Optional[str]) -> str:
        return self.render_page(content).html

    def render_page(self, content: Optional[str]) -> RenderResult:
        if not content:
            return RenderResult(html=EMPTY_PAGE_HTML)

        state = _RenderState()
        text = content.replace("\x00", "").replace("\r\n", "\n").replace("\r", "\n")
        text = self._stash_code(text, state)
        text = _escape_stray(text)
        self._collect_headings(text, state)

        # Wiki structure
        text = self._render_wiki_headers(text, state)
        text = self._render_categories(text, state)
        text = self._render_tags(text, state)
        text = self._render_table_of_contents(text, state)
        text = self._render_footnotes(text, state)
        text = self._render_wiki_bold(text)
        text = self._render_strikethrough(text)

        # Markdown
        text = self._render_headers(text, state)
        text = self._render_horizontal_rules(text)
        text = self._render_images(text, state)
        text = self._render_bold(text)
        text = self._render_italic(text)
        text = self._render_blockquotes(text)
        text = self._render_embeds(text)
        text = self._render_wiki_links(text)
        text = self._render_links(text)
        text = self._render_lists(text)
        text = self._render_paragraphs(text)

        html = _TOKEN_RE.sub(lambda m: state.stash[int(m.group(1))], text)
        return RenderResult(
            html=html,
            outgoing_links=self.get_linked_pages(content),
            table_of_contents=state.toc,
            footnotes=state.footnotes,
            categories=_unique(state.categories),
            tags=_unique(state.tags),
        )

    def get_linked_pages(self, content: Optional[str]) -> list[str]:
        """Distinct internal link targets in order of first appearance."""
        if not content:
            return []
        text = _blank_code(content)
        found: list[tuple[int, str]] = []
        for m in _WIKILINK_RE.finditer(text):
            target = m.group(1).strip()
            if target and not target.startswith(_EMBED_PREFIXES) \
                    and not target.startswith(CATEGORY_PREFIX):
                found.append((m.start(), target))
        for m in _MDLINK_RE.finditer(text):
            target = m.group(2).strip()
            if target and not _is_external(target):
                found.append((m.start(), target))
        return _unique([target for _, target in sorted(found)])

    def generate_table_of_contents(self, content: Optional[str]) -> list[TocEntry]:
        if not content:
            return []
        text = _blank_code(content.replace("\r\n", "\n").replace("\r", "\n"))
        return _allocate_anchors(_scan_headings(text))

    # ── preparation ───────────────────────────────────────────────────────

    def _stash_code(self, text: str, state: _RenderState) -> str:
        """Swap code for placeholders so no later pass touches it."""
        def _fence(m: re.Match) -> str:
            lang = m.group(1) or ""
            code = m.group(2).strip("\n")
            if lang and self.highlight_code:
                block = _highlight_code(code, lang)
            elif lang:
                block = f'<pre><code class="language-{escape_attr(lang)}">{escape_html(code)}</code></pre>'
            else:
                block = f"<pre><code>{escape_html(code)}</code></pre>"
            state.stash.append(block)
            # keep the line count so heading line indices stay aligned
            return _BLOCK_TOKEN.format(len(state.stash) - 1) + "\n" * m.group(0).count("\n")

        def _inline(m: re.Match) -> str:
            state.stash.append(f"<code>{escape_html(m.group(1))}</code>")
            return _INLINE_TOKEN.format(len(state.stash) - 1)

        text = _FENCE_RE.sub(_fence, text)
        return _INLINE_CODE_RE.sub(_inline, text)

    def _collect_headings(self, text: str, state: _RenderState) -> None:
        headings = _scan_headings(text)
        state.toc = _allocate_anchors(headings)
        for (index, _, markup), entry in zip(headings, state.toc):
            state.heading_markup[index] = _strip_footnotes(markup)
            state.anchors[index] = entry.anchor_id

    # ── wiki structure ────────────────────────────────────────────────────

    def _render_heading_lines(self, text: str, pattern: re.Pattern, state: _RenderState) -> str:
        lines = text.split("\n")
        for i, line in enumerate(lines):
            m = pattern.match(line)
            if not m:
                continue
            level = len(m.group(1))
            inner = m.group(2).strip()
            anchor = state.anchor_for(i, inner)
            lines[i] = f'<h{level} id="{anchor}">{inner}</h{level}>'
        return "\n".join(lines)

    def _render_wiki_headers(self, text: str, state: _RenderState) -> str:
        return self._render_heading_lines(text, _WIKI_HEADER_RE, state)

    def _render_categories(self, text: str, state: _RenderState) -> str:
        def _replace(m: re.Match) -> str:
            name = m.group(1).strip()
            state.categories.append(_html.unescape(name))
            return (
                f'<div class="wiki-category category-link" '
                f'data-category="{escape_attr(CATEGORY_PREFIX + name)}">'
                f'<span class="category-label">{CATEGORY_PREFIX}</span> '
                f'<span class="category-name">{escape_attr(name)}</span></div>'
            )
        return _CATEGORY_RE.sub(_replace, text)

    def _render_tags(self, text: str, state: _RenderState) -> str:
        def _replace(m: re.Match) -> str:
            tag = m.group(1)
            state.tags.append(_html.unescape(tag))
            return (
                f'<span class="wiki-tag" data-tag="{escape_attr(tag)}" '
                f'role="link" tabindex="0">#{tag}</span>'
            )
        # literal HTML tags keep their attribute values
        parts = _TAG_SPLIT_RE.split(text)
        for i in range(0, len(parts), 2):
            parts[i] = _TAG_RE.sub(_replace, parts[i])
        return "".join(parts)

    def _render_table_of_contents(self, text: str, state: _RenderState) -> str:
        if not _TOC_MARKER_RE.search(text):
            return text
        block = self._toc_block(state)
        return _TOC_MARKER_RE.sub(lambda m: block, text)

    def _toc_block(self, state: _RenderState) -> str:
        if not state.toc:
            return ""
        base_level = min(entry.level for entry in state.toc)
        parts = ['<div class="wiki-toc">', f"<h4>{TOC_TITLE}</h4>", "<ul>"]
        depth = 0
        for entry in state.toc:
            rel = entry.level - base_level
            while depth < rel:
                parts.append("<ul>")
                depth += 1
            while depth > rel:
                parts.append("</ul>")
                depth -= 1
            label = state.heading_markup.get(entry.source_line_index, entry.text)
            parts.append(f'<li><a href="#{entry.anchor_id}">{label}</a></li>')
        parts.extend("</ul>" for _ in range(depth))
        parts.append("</ul></div>")
        # one line: later passes are line-oriented
        return "".join(parts)

    def _render_footnotes(self, text: str, state: _RenderState) -> str:
        def _replace(m: re.Match) -> str:
            number = len(state.footnotes) + 1
            note = Footnote(
                ordinal_number=number,
                anchor_id=f"footnote-{number}",
                back_reference_id=f"backref-{number}",
                content=m.group(2).strip(),
            )
            state.footnotes.append(note)
            return (
                f'{m.group(1)}<sup class="footnote-ref">'
                f'<a id="{note.back_reference_id}" href="#{note.anchor_id}" '
                f'data-footnote="{note.anchor_id}">{number}</a></sup>'
            )

        text = _FOOTNOTE_RE.sub(_replace, text)
        if not state.footnotes:
            return text

        items = "".join(
            f'<li id="{note.anchor_id}" class="footnote">'
            f'<span class="footnote-content">{note.content}</span> '
            f'<a class="footnote-backref" href="#{note.back_reference_id}" '
            f'title="{BACKREF_TITLE}">↑</a></li>'
            for note in state.footnotes
        )
        return (
            f'{text}\n<div class="footnotes-section"><hr><h4>{FOOTNOTES_TITLE}</h4>'
            f'<ol class="footnotes-list">{items}</ol></div>'
        )

    def _render_wiki_bold(self, text: str) -> str:
        return _WIKI_BOLD_RE.sub(r"<strong>\1</strong>", text)

    def _render_strikethrough(self, text: str) -> str:
        return _STRIKE_RE.sub(r"<del>\1</del>", text)

    # ── markdown ──────────────────────────────────────────────────────────

    def _render_headers(self, text: str, state: _RenderState) -> str:
        return self._render_heading_lines(text, _ATX_HEADER_RE, state)

    def _render_horizontal_rules(self, text: str) -> str:
        return _HR_RE.sub("<hr>", text)

    def _render_images(self, text: str, state: _RenderState) -> str:
        """Resolve images; the emitted markup is stashed like code."""
        if self.image_lookup is None:
            return text

        def _replace(m: re.Match) -> str:
            ref = ImageReference.parse(m.group(1))
            name = escape_attr(ref.name)
            try:
                image = self.image_lookup(_html.unescape(ref.name))
            except Exception:
                log.warning("Image lookup failed for %r", ref.name, exc_info=True)
                image = None
            if image is None:
                log.debug("Image %r not found", ref.name)
                state.stash.append(f'<span class="image-missing">[이미지 "{name}"를 찾을 수 없습니다]</span>')
                return _INLINE_TOKEN.format(len(state.stash) - 1)
            img = (
                f'<img src="{escape_attr(image.data_uri)}" alt="{name}" '
                f'title="{name}" loading="lazy">'
            )
            if not ref.caption:
                state.stash.append(img)
                return _INLINE_TOKEN.format(len(state.stash) - 1)
            state.stash.append(
                f'<figure class="wiki-figure">{img}'
                f'<figcaption class="image-caption">{escape_attr(ref.caption)}</figcaption></figure>'
            )
            return _BLOCK_TOKEN.format(len(state.stash) - 1)

        return _IMAGE_RE.sub(_replace, text)

    def _render_bold(self, text: str) -> str:
        return _BOLD_RE.sub(r"<strong>\1</strong>", text)

    def _render_italic(self, text: str) -> str:
        return _ITALIC_RE.sub(r"<em>\1</em>", text)

    def _render_blockquotes(self, text: str) -> str:
        result: list[str] = []
        quote: list[str] = []
        for line in text.split("\n"):
            m = _QUOTE_RE.match(line)
            if m:
                quote.append(m.group(1))
                continue
            if quote:
                result.append(f"<blockquote>{' '.join(quote)}</blockquote>")
                quote = []
            result.append(line)
        if quote:
            result.append(f"<blockquote>{' '.join(quote)}</blockquote>")
        return "\n".join(result)

    def _render_embeds(self, text: str) -> str:
        def _replace(m: re.Match) -> str:
            video_id = _sanitize_video_id(m.group(1) if m.group(1) is not None else m.group(2))
            if not video_id:
                return m.group(0)
            return (
                '<div class="youtube-embed-container">'
                f'<iframe class="youtube-embed" src="{YOUTUBE_EMBED_URL.format(video_id)}" '
                f'title="YouTube video: {video_id}" '
                'allow="accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture" '
                'sandbox="allow-scripts allow-same-origin allow-presentation" '
                'referrerpolicy="strict-origin-when-cross-origin" '
                'allowfullscreen loading="lazy"></iframe></div>'
            )
        return _EMBED_RE.sub(_replace, text)

    def _href_for(self, title: str) -> str:
        try:
            href = self.link_encoder(title)
        except Exception:
            log.warning("Link encoder failed for %r", title, exc_info=True)
            href = default_link_encoder(title)
        return escape_attr(href)

    def _render_wiki_links(self, text: str) -> str:
        def _replace(m: re.Match) -> str:
            target = m.group(1).strip()
            if not target or target.startswith(_EMBED_PREFIXES):
                return m.group(0)
            display = (m.group(2) or target).strip()
            title = _html.unescape(target)
            return (
                f'<a href="{self._href_for(title)}" class="internal-link wiki-link" '
                f'data-page="{escape_attr(target)}">{display}</a>'
            )
        return _WIKILINK_RE.sub(_replace, text)

    def _render_links(self, text: str) -> str:
        def _replace(m: re.Match) -> str:
            label  = m.group(1)
            target = m.group(2).strip()
            if _is_external(target):
                return (
                    f'<a href="{escape_attr(target)}" target="_blank" '
                    f'rel="noopener noreferrer">{label}</a>'
                )
            title = _html.unescape(target)
            return (
                f'<a href="{self._href_for(title)}" class="internal-link" '
                f'data-page="{escape_attr(target)}">{label}</a>'
            )
        return _MDLINK_RE.sub(_replace, text)

    # ── blocks ────────────────────────────────────────────────────────────

    def _render_lists(self, text: str) -> str:
        result: list[str] = []
        open_list: str | None = None   # "ul" / "ol"

        for line in text.split("\n"):
            ul = _UL_ITEM_RE.match(line)
            ol = None if ul else _OL_ITEM_RE.match(line)
            kind = "ul" if ul else "ol" if ol else None

            if kind != open_list and open_list:
                result.append(f"</{open_list}>")
                open_list = None
            if kind is None:
                result.append(line)
                continue
            if open_list is None:
                result.append(f"<{kind}>")
                open_list = kind
            result.append(f"<li>{(ul or ol).group(1)}</li>")

        if open_list:
            result.append(f"</{open_list}>")
        return "\n".join(result)

    def _render_paragraphs(self, text: str) -> str:
        result: list[str] = []
        paragraph: list[str] = []

        def _flush() -> None:
            if paragraph:
                result.append(f"<p>{' '.join(paragraph)}</p>")
                paragraph.clear()

        for line in text.split("\n"):
            trimmed = line.strip()
            if not trimmed:
                _flush()
            elif self._is_block_line(trimmed):
                _flush()
                result.append(line)
            else:
                paragraph.append(trimmed)
        _flush()
        return "\n".join(result)

    @staticmethod
    def _is_block_line(trimmed: str) -> bool:
        return bool(
            _BLOCK_TAG_RE.match(trimmed)
            or _BLOCK_LINE_RE.fullmatch(trimmed)
            or trimmed.startswith(("#", "- ", "> ", "```"))
            or _OL_MARKER_RE.match(trimmed)
        )


# -----------------------------------------------------------------------------
# Search highlighting
# -----------------------------------------------------------------------------

def highlight_search_term(html: str, term: str) -> str:
    """
    Wrap case-insensitive occurrences of *term* in ``<mark>``.

    Only text between tags is touched, entities are never split, and text
    already inside a ``<mark>`` is skipped, so highlighting twice is a no-op.
    """
    if not html or not term:
        return html or ""

    needle = _html.escape(term, quote=False)
    pattern = re.compile(r"(&#?\w+;)|(" + re.escape(needle) + r")", re.IGNORECASE)

    def _mark(m: re.Match) -> str:
        if m.group(1) and m.group(1).lower() != needle.lower():
            return m.group(1)
        return f"<mark>{m.group(0)}</mark>"

    parts = _TAG_SPLIT_RE.split(html)
    depth = 0
    for i, part in enumerate(parts):
        if i % 2:
            lowered = part.lower()
            if re.match(r"<mark\b", lowered):
                depth += 1
            elif lowered.startswith("</mark"):
                depth = max(depth - 1, 0)
        elif part and not depth:
            parts[i] = pattern.sub(_mark, part)
    return "".join(parts)


# -----------------------------------------------------------------------------
# Metadata extraction (no render needed)
# -----------------------------------------------------------------------------

def extract_categories(content: Optional[str]) -> list[str]:
    """Distinct ``[[분류:Name]]`` names in order of appearance."""
    if not content:
        return []
    text = _blank_code(content)
    return _unique([m.group(1).strip() for m in _CATEGORY_RE.finditer(text)])


def extract_tags(content: Optional[str]) -> list[str]:
    """Distinct ``#tag`` names in order of appearance."""
    if not content:
        return []
    text = _escape_stray(_blank_code(content))
    return _unique([
        m.group(1)
        for part in _TAG_SPLIT_RE.split(text)[::2]
        for m in _TAG_RE.finditer(part)
    ])


def extract_image_names(content: Optional[str]) -> list[str]:
    """Distinct image names referenced with ``![name]`` / ``![name|caption]``."""
    if not content:
        return []
    text = _blank_code(content)
    return _unique([ImageReference.parse(m.group(1)).name for m in _IMAGE_RE.finditer(text)])


# -----------------------------------------------------------------------------
# Module-level shortcuts
# -----------------------------------------------------------------------------

_default_renderer = MarkupRenderer()


def _renderer_for(
    image_lookup: ImageLookup | None,
    link_encoder: LinkEncoder | None,
) -> MarkupRenderer:
    if image_lookup is None and link_encoder is None:
        return _default_renderer
    return MarkupRenderer(image_lookup=image_lookup, link_encoder=link_encoder)


def render(
    content: Optional[str],
    image_lookup: ImageLookup | None = None,
    link_encoder: LinkEncoder | None = None,
) -> str:
    """Render *content* to HTML."""
    return _renderer_for(image_lookup, link_encoder).render(content)


def render_page(
    content: Optional[str],
    image_lookup: ImageLookup | None = None,
    link_encoder: LinkEncoder | None = None,
) -> RenderResult:
    return _renderer_for(image_lookup, link_encoder).render_page(content)


def get_linked_pages(content: Optional[str]) -> list[str]:
    return _default_renderer.get_linked_pages(content)


def generate_table_of_contents(content: Optional[str]) -> list[TocEntry]:
    return _default_renderer.generate_table_of_contents(content)


# -----------------------------------------------------------------------------
