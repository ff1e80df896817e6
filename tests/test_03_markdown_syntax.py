"""
Tests for the Markdown-flavoured passes: code (fenced and inline, with
Pygments highlighting), rules, images, blockquotes, video embeds, links,
lists and paragraph assembly.
"""
from __future__ import annotations

import pytest
from pagewiki.services.renderer import (
    MarkupRenderer,
    ResolvedImage,
    extract_image_names,
    render,
)


DATA_URI = "data:image/png;base64,AAAA"


def _lookup(name: str):
    return ResolvedImage(data_uri=DATA_URI) if name == "cat" else None


# ── Fenced code ──────────────────────────────────────────────────────────────

def test_fence_without_language_is_escaped_pre():
    html = render("```\n<b>x</b> & y\n```")
    assert html == "<pre><code>&lt;b&gt;x&lt;/b&gt; &amp; y</code></pre>"


def test_fence_content_not_reprocessed():
    html = render("```\n**x** #include [[Page]] --y--\n```")
    assert "<strong>" not in html
    assert "wiki-tag" not in html
    assert "<a " not in html
    assert "**x** #include [[Page]] --y--" in html


def test_fence_with_language_is_highlighted():
    html = render("```python\nx = 1\n```")
    assert '<div class="highlight">' in html
    assert "<span" in html


def test_fence_unknown_language_still_renders():
    html = render("```zzznotalang\nhello\n```")
    assert '<div class="highlight">' in html
    assert "hello" in html


def test_fence_highlighting_can_be_disabled():
    html = MarkupRenderer(highlight_code=False).render("```python\nx = 1\n```")
    assert html == '<pre><code class="language-python">x = 1</code></pre>'


def test_fence_between_paragraphs():
    html = render("before\n```\ncode\n```\nafter")
    assert html == "<p>before</p>\n<pre><code>code</code></pre>\n<p>after</p>"


# ── Inline code ──────────────────────────────────────────────────────────────

def test_inline_code_escaped():
    assert render("Use `<b>` here") == "<p>Use <code>&lt;b&gt;</code> here</p>"


def test_inline_code_not_emphasised():
    html = render("`**literal**` and **bold**")
    assert "<code>**literal**</code>" in html
    assert "<strong>bold</strong>" in html


# ── Horizontal rules ─────────────────────────────────────────────────────────

@pytest.mark.parametrize("rule", ["---", "-----", "---   "])
def test_horizontal_rule(rule):
    assert render(f"above\n{rule}\nbelow") == "<p>above</p>\n<hr>\n<p>below</p>"


# ── Images ───────────────────────────────────────────────────────────────────

def test_image_resolved():
    html = MarkupRenderer(image_lookup=_lookup).render("![cat]")
    assert f'<img src="{DATA_URI}" alt="cat" title="cat" loading="lazy">' in html


def test_image_with_caption():
    html = MarkupRenderer(image_lookup=_lookup).render("![cat|A sleepy cat]")
    assert html.startswith('<figure class="wiki-figure"><img')
    assert '<figcaption class="image-caption">A sleepy cat</figcaption>' in html


def test_image_missing_marker():
    html = MarkupRenderer(image_lookup=lambda name: None).render("![missing]")
    assert 'class="image-missing"' in html
    assert "missing" in html
    assert "<img" not in html


def test_image_lookup_error_degrades_to_missing():
    def broken(name):
        raise RuntimeError("storage down")

    html = MarkupRenderer(image_lookup=broken).render("![cat]")
    assert 'class="image-missing"' in html


def test_image_without_lookup_left_literal():
    assert render("![cat]") == "<p>![cat]</p>"


def test_image_name_is_attribute_escaped():
    html = MarkupRenderer(image_lookup=lambda name: None).render('![a"b]')
    assert 'a&quot;b' in html
    assert 'a"b' not in html


def test_image_attributes_not_reinterpreted_as_emphasis():
    html = MarkupRenderer(image_lookup=lambda name: ResolvedImage(DATA_URI)).render("![a*b*c|x **y** z]")
    assert 'alt="a*b*c" title="a*b*c"' in html
    assert '<figcaption class="image-caption">x **y** z</figcaption>' in html
    assert "<em>" not in html
    assert "<strong>" not in html


def test_emphasis_around_image_still_applies():
    html = MarkupRenderer(image_lookup=_lookup).render("*see ![cat]*")
    assert html == f'<p><em>see <img src="{DATA_URI}" alt="cat" title="cat" loading="lazy"></em></p>'


def test_extract_image_names():
    assert extract_image_names("![a] ![b|cap] ![a|again] `![code]`") == ["a", "b"]


# ── Blockquotes ──────────────────────────────────────────────────────────────

def test_blockquote_lines_coalesce():
    assert render("> first\n> second") == "<blockquote>first second</blockquote>"


def test_blockquote_then_paragraph():
    html = render("> quoted\n\nplain")
    assert html == "<blockquote>quoted</blockquote>\n<p>plain</p>"


def test_bare_greater_than_is_escaped():
    assert render(">not a quote") == "<p>&gt;not a quote</p>"


# ── Video embeds ─────────────────────────────────────────────────────────────

def test_youtube_embed():
    html = render("[[htp://yt.dQw4w9WgXcQ]]")
    assert '<div class="youtube-embed-container">' in html
    assert "embed/dQw4w9WgXcQ" in html
    assert 'sandbox="' in html
    assert 'loading="lazy"' in html


def test_reversed_embed_token():
    assert "embed/abc_123-X" in render("[[yt://htp.abc_123-X]]")


def test_embed_id_sanitised():
    html = render('[[htp://yt.ab"c d!e]]')
    assert "embed/abcde" in html


def test_embed_id_empty_after_sanitising_left_unchanged():
    html = render("[[htp://yt.!!!]]")
    assert html == "<p>[[htp://yt.!!!]]</p>"
    assert "iframe" not in html


def test_embed_is_never_linkified():
    assert "wiki-link" not in render("[[htp://yt.abc]] [[yt://htp.]]")


# ── Wiki links ───────────────────────────────────────────────────────────────

def test_wiki_link_default_encoder():
    html = render("[[My Page]]")
    assert '<a href="/My%20Page" class="internal-link wiki-link" data-page="My Page">My Page</a>' in html


def test_wiki_link_with_display_text():
    html = render("[[Target|shown text]]")
    assert 'data-page="Target">shown text</a>' in html


def test_wiki_link_custom_encoder():
    renderer = MarkupRenderer(link_encoder=lambda title: f"#/page/{title.upper()}")
    assert 'href="#/page/HOME"' in renderer.render("[[home]]")


def test_link_encoder_failure_falls_back():
    def broken(title):
        raise ValueError("bad title")

    assert 'href="/Home"' in MarkupRenderer(link_encoder=broken).render("[[Home]]")


def test_wiki_link_href_attribute_escaped():
    renderer = MarkupRenderer(link_encoder=lambda title: '/p?x="1"&y=2')
    assert 'href="/p?x=&quot;1&quot;&amp;y=2"' in renderer.render("[[A]]")


# ── Markdown links ───────────────────────────────────────────────────────────

def test_markdown_external_link():
    html = render("[Google](https://google.com)")
    assert '<a href="https://google.com" target="_blank" rel="noopener noreferrer">Google</a>' in html


def test_markdown_anchor_link_is_external_style():
    html = render("[Top](#top)")
    assert '<a href="#top" target="_blank" rel="noopener noreferrer">Top</a>' in html


def test_markdown_internal_link_uses_encoder():
    renderer = MarkupRenderer(link_encoder=lambda title: "/wiki/" + title)
    html = renderer.render("[read this](Other)")
    assert '<a href="/wiki/Other" class="internal-link" data-page="Other">read this</a>' in html


# ── Lists ────────────────────────────────────────────────────────────────────

def test_unordered_list_closed_before_paragraph():
    html = render("- a\n- b\n\ntext")
    assert html == "<ul>\n<li>a</li>\n<li>b</li>\n</ul>\n<p>text</p>"


def test_ordered_list():
    assert render("1. one\n2. two") == "<ol>\n<li>one</li>\n<li>two</li>\n</ol>"


def test_switching_list_type_closes_open_list():
    html = render("- a\n1. b")
    assert html == "<ul>\n<li>a</li>\n</ul>\n<ol>\n<li>b</li>\n</ol>"


def test_non_list_line_closes_list():
    html = render("- a\nplain\n- b")
    assert html.count("<ul>") == 2
    assert html.index("</ul>") < html.index("<p>plain</p>")


def test_list_items_keep_inline_markup():
    html = render("- **bold** item\n- [[Page]]")
    assert "<li><strong>bold</strong> item</li>" in html
    assert "wiki-link" in html


# ── Paragraph assembly ───────────────────────────────────────────────────────

def test_line_starting_with_inline_markup_is_wrapped():
    assert render("**Bold** start") == "<p><strong>Bold</strong> start</p>"


def test_image_line_is_inline():
    html = MarkupRenderer(image_lookup=_lookup).render("![cat]")
    assert html.startswith("<p><img")
