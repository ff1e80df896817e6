"""
Tests for search-term highlighting and the HTML-to-text helper.
"""
from __future__ import annotations

import pytest
from pagewiki.services.renderer import extract_text, highlight_search_term, render


# ── highlight_search_term ────────────────────────────────────────────────────

def test_highlight_simple():
    assert highlight_search_term("<p>Hello world</p>", "world") == "<p>Hello <mark>world</mark></p>"


def test_highlight_case_insensitive_keeps_original_case():
    assert highlight_search_term("Wiki wiki WIKI", "wiki") == (
        "<mark>Wiki</mark> <mark>wiki</mark> <mark>WIKI</mark>"
    )


def test_highlight_is_idempotent():
    once = highlight_search_term("<p>alpha beta alpha</p>", "alpha")
    assert highlight_search_term(once, "alpha") == once


def test_highlight_does_not_touch_attributes():
    html = '<a href="/world" title="world">world</a>'
    assert highlight_search_term(html, "world") == '<a href="/world" title="world"><mark>world</mark></a>'


def test_highlight_regex_metacharacters_are_literal():
    assert highlight_search_term("axb a.b", "a.b") == "axb <mark>a.b</mark>"
    assert highlight_search_term("(x) x", "(x)") == "<mark>(x)</mark> x"


def test_highlight_does_not_split_entities():
    assert highlight_search_term("fish &amp; chips", "amp") == "fish &amp; chips"


def test_highlight_ampersand_term_matches_entity():
    assert highlight_search_term("fish &amp; chips", "&") == "fish <mark>&amp;</mark> chips"


@pytest.mark.parametrize("html,term", [("", "x"), ("<p>x</p>", "")])
def test_highlight_empty_inputs(html, term):
    assert highlight_search_term(html, term) == html


def test_highlight_rendered_page():
    html = highlight_search_term(render("== Intro ==\nthe intro text"), "intro")
    # the heading id attribute is left alone
    assert '<h2 id="intro">' in html
    assert "<mark>Intro</mark>" in html
    assert "the <mark>intro</mark> text" in html


# ── extract_text ─────────────────────────────────────────────────────────────

def test_extract_text_strips_tags_and_entities():
    assert extract_text("<p>a &amp; <b>b</b></p>\n<p>c</p>") == "a & b c"


def test_extract_text_empty():
    assert extract_text("") == ""
