"""Everything the renderer emits must pass the stored-HTML validator."""

import pytest

from proseguard.core.rendering.html_renderer import render_fallback_html
from proseguard.core.validation.engine import is_safe_editor_html

FULL = {"profile": "full", "origin": "https://example.com"}
BASIC = {"profile": "basic", "origin": "https://example.com"}


def _text(text, *marks):
    node = {"type": "text", "text": text}
    if marks:
        node["marks"] = [{"type": m} for m in marks]
    return node


def _figure(caption, **attrs):
    base = {"src": "/media/a.png", "alt": "A"}
    base.update(attrs)
    return {"type": "imageFigure", "attrs": base, "content": caption}


DOCS = [
    {"type": "doc", "content": []},
    {"type": "doc", "content": [{"type": "paragraph"}]},
    {
        "type": "doc",
        "content": [
            {"type": "heading", "attrs": {"level": 1}, "content": [_text("Title", "bold", "italic")]},
            {"type": "paragraph", "content": [_text("a < b & \"c\" 'd'"), {"type": "hardBreak"}, _text("x", "strike", "code")]},
            {"type": "paragraph", "content": [_text("javascript:alert(1) onclick=x style=y <script>")]},
            {"type": "blockquote", "content": [{"type": "paragraph", "content": [_text("quote")]}]},
            {
                "type": "bulletList",
                "content": [
                    {"type": "listItem", "content": [{"type": "paragraph", "content": [_text("one")]}]},
                    {"type": "listItem", "content": []},
                ],
            },
            {"type": "orderedList", "content": []},
            {"type": "codeBlock", "content": [_text("if (a < b) {\n  run()\n}")]},
            {"type": "horizontalRule"},
        ],
    },
    {
        "type": "doc",
        "content": [
            _figure([_text("Cap", "bold"), {"type": "hardBreak"}, _text("line", "italic", "code")], width=640, height=480),
            _figure([], size="small", align="start"),
            _figure([_text("   ")], src="https://example.com/media/b.png"),
            _figure([{"type": "hardBreak"}], alt='"><script>alert(1)</script>'),
            _figure([_text("</figcaption></figure><img src=x onerror=alert(1)>")], alt="x onload=y javascript:z"),
            {"type": "blockquote", "content": [_figure([_text("nested")])]},
            {"type": "bulletList", "content": [{"type": "listItem", "content": [_figure([_text("in list")])]}]},
        ],
    },
    {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [_text("see javascript"), _text(": is a scheme")]},
            {"type": "heading", "attrs": {"level": 2}, "content": [_text("java"), _text("script:x")]},
            _figure([_text("javascript"), _text(":y")]),
        ],
    },
    {"type": "doc", "content": [_figure([_text("c")], src="https://evil.example/media/x.png"), {"type": "iframe"}]},
    "not json at all",
]


@pytest.mark.parametrize("doc", DOCS)
@pytest.mark.parametrize("context", [FULL, BASIC])
def test_rendered_output_always_validates(doc, context):
    html = render_fallback_html(doc, context)
    assert is_safe_editor_html(html, context), html


@pytest.mark.parametrize("doc", DOCS)
def test_basic_profile_never_emits_images(doc):
    html = render_fallback_html(doc, BASIC)
    assert "<img" not in html
    assert "<figure" not in html
