import json
import logging

import pytest

from proseguard.core.errors import EditorConfigurationError
from proseguard.core.normalization.document import MAX_DEPTH, sanitize_editor_json

FULL = {"profile": "full", "slug": "about", "documentId": "hero"}
BASIC = {"profile": "basic", "slug": "about", "documentId": "hero"}


def _fixed_id():
    return "imgcap-fixed0001"


def _doc(*content):
    return {"type": "doc", "content": list(content)}


def _para(*content):
    return {"type": "paragraph", "content": list(content)}


def _text(text, *marks):
    node = {"type": "text", "text": text}
    if marks:
        node["marks"] = [{"type": m} for m in marks]
    return node


def _reasons(caplog):
    return [getattr(r, "reason", None) for r in caplog.records if r.name == "proseguard.render"]


@pytest.fixture(autouse=True)
def _capture_warnings(caplog):
    caplog.set_level(logging.WARNING, logger="proseguard.render")


def test_valid_document_is_preserved(caplog):
    doc = _doc(
        {"type": "heading", "attrs": {"level": 3}, "content": [_text("Title")]},
        _para(_text("Hello ", "bold"), _text("world", "italic", "strike"), {"type": "hardBreak"}),
        {"type": "bulletList", "content": [{"type": "listItem", "content": [_para(_text("one"))]}]},
        {"type": "horizontalRule"},
    )

    assert sanitize_editor_json(doc, BASIC) == doc
    assert _reasons(caplog) == []


def test_unknown_node_is_dropped_siblings_kept(caplog):
    doc = _doc(_para(_text("a")), {"type": "iframe", "attrs": {"src": "https://evil"}}, _para(_text("b")))
    out = sanitize_editor_json(doc, BASIC)

    assert out == _doc(_para(_text("a")), _para(_text("b")))
    assert _reasons(caplog) == ["invalid_node_type"]


def test_image_figure_dropped_for_basic_profile(caplog):
    doc = _doc({"type": "imageFigure", "attrs": {"src": "/media/a.png"}, "content": []})
    out = sanitize_editor_json(doc, BASIC)

    assert out == _doc()
    assert _reasons(caplog) == ["image_disallowed_for_profile"]
    record = caplog.records[-1]
    assert record.profile == "basic"
    assert record.slug == "about"
    assert record.documentId == "hero"


def test_image_figure_normalized_for_full_profile():
    doc = _doc(
        {
            "type": "imageFigure",
            "attrs": {"src": "/media/a.png", "alt": "A", "width": "99999", "size": "tiny", "onload": "x()"},
            "content": [_text("Cap", "bold", "strike"), {"type": "hardBreak"}],
        }
    )
    out = sanitize_editor_json(doc, FULL, id_factory=_fixed_id)

    assert out["content"] == [
        {
            "type": "imageFigure",
            "attrs": {
                "src": "/media/a.png",
                "alt": "A",
                "width": 8192,
                "height": None,
                "size": "medium",
                "align": "center",
                "captionId": "imgcap-fixed0001",
            },
            "content": [_text("Cap", "bold"), {"type": "hardBreak"}],
        }
    ]


def test_image_figure_with_bad_src_is_dropped(caplog):
    doc = _doc({"type": "imageFigure", "attrs": {"src": "javascript:alert(1)"}}, _para(_text("after")))
    out = sanitize_editor_json(doc, FULL)

    assert out == _doc(_para(_text("after")))
    assert _reasons(caplog) == ["invalid_image_src"]


def test_caption_rejects_nested_nodes(caplog):
    doc = _doc(
        {
            "type": "imageFigure",
            "attrs": {"src": "/media/a.png", "captionId": "imgcap-keepme123"},
            "content": [_text("ok"), {"type": "imageFigure", "attrs": {"src": "/media/b.png"}}],
        }
    )
    out = sanitize_editor_json(doc, FULL)

    assert out["content"][0]["content"] == [_text("ok")]
    assert out["content"][0]["attrs"]["captionId"] == "imgcap-keepme123"
    assert "invalid_caption_node" in _reasons(caplog)


def test_invalid_marks_are_dropped(caplog):
    doc = _doc(_para(_text("x", "bold", "underline"), {"type": "text", "text": "y", "marks": ["bold", {"type": "link"}]}))
    out = sanitize_editor_json(doc, BASIC)

    assert out == _doc(_para(_text("x", "bold"), _text("y")))
    assert _reasons(caplog).count("invalid_mark") == 3


def test_mark_attrs_are_stripped():
    doc = _doc(_para({"type": "text", "text": "x", "marks": [{"type": "bold", "attrs": {"href": "javascript:x"}}]}))
    assert sanitize_editor_json(doc, BASIC) == _doc(_para(_text("x", "bold")))


def test_block_inside_paragraph_is_dropped(caplog):
    doc = _doc(_para(_text("a"), {"type": "blockquote", "content": [_para(_text("b"))]}))
    out = sanitize_editor_json(doc, BASIC)

    assert out == _doc(_para(_text("a")))
    assert _reasons(caplog) == ["invalid_node_position"]


def test_nested_doc_is_dropped(caplog):
    out = sanitize_editor_json(_doc(_doc(_para(_text("a")))), BASIC)
    assert out == _doc()
    assert _reasons(caplog) == ["invalid_node_type"]


@pytest.mark.parametrize(
    "level, expected, warned",
    [
        (1, 1, False),
        (6, 6, False),
        (4.0, 4, False),
        ("3", 3, False),
        (9, 2, True),
        (0, 2, True),
        (True, 2, True),
        ("h1", 2, True),
        (None, 2, True),
        ([1], 2, True),
    ],
)
def test_heading_levels(caplog, level, expected, warned):
    doc = _doc({"type": "heading", "attrs": {"level": level}, "content": [_text("T")]})
    out = sanitize_editor_json(doc, BASIC)

    assert out["content"][0]["attrs"] == {"level": expected}
    assert ("invalid_heading_level" in _reasons(caplog)) is warned


def test_code_block_collapses_to_plain_text(caplog):
    doc = _doc(
        {
            "type": "codeBlock",
            "attrs": {"language": "js"},
            "content": [_text("a", "bold"), {"type": "hardBreak"}, _text("b"), {"type": "paragraph"}],
        }
    )
    out = sanitize_editor_json(doc, BASIC)

    assert out == _doc({"type": "codeBlock", "content": [_text("a\nb")]})
    assert _reasons(caplog) == ["invalid_node_position"]


def test_empty_containers_are_kept():
    doc = _doc({"type": "paragraph"}, {"type": "codeBlock", "content": []}, {"type": "blockquote", "content": "oops"})
    out = sanitize_editor_json(doc, BASIC)

    assert out == _doc(
        {"type": "paragraph", "content": []},
        {"type": "codeBlock", "content": []},
        {"type": "blockquote", "content": []},
    )


def test_node_attrs_outside_schema_are_dropped():
    doc = _doc({"type": "paragraph", "attrs": {"style": "color:red"}, "content": [{"type": "text", "text": 5}]})
    assert sanitize_editor_json(doc, BASIC) == _doc(_para(_text("")))


def test_json_string_input():
    doc = _doc(_para(_text("from string")))
    assert sanitize_editor_json(json.dumps(doc), BASIC) == doc


def test_unparseable_json_returns_none(caplog):
    assert sanitize_editor_json("{not json", BASIC) is None
    assert _reasons(caplog) == ["json_parse_failed"]


@pytest.mark.parametrize(
    "value",
    [
        None,
        [],
        "[]",
        {"type": "paragraph", "content": []},
        {"type": "doc"},
        {"type": "doc", "content": {}},
    ],
)
def test_unusable_top_level_returns_none(caplog, value):
    assert sanitize_editor_json(value, BASIC) is None
    assert _reasons(caplog) == ["invalid_document"]


def test_depth_is_bounded(caplog):
    node = _para(_text("deep"))
    for _ in range(MAX_DEPTH + 20):
        node = {"type": "blockquote", "content": [node]}
    out = sanitize_editor_json(_doc(node), BASIC)

    depth = 0
    current = out["content"]
    while current and current[0]["type"] == "blockquote":
        depth += 1
        current = current[0]["content"]

    assert depth == MAX_DEPTH
    assert current == []
    assert "max_depth_exceeded" in _reasons(caplog)


def test_deeply_nested_json_string_does_not_raise():
    payload = '{"type":"doc","content":' + "[" * 100000 + "]" * 100000 + "}"
    assert sanitize_editor_json(payload, BASIC) is None


def test_sanitize_is_idempotent():
    doc = _doc(
        {"type": "imageFigure", "attrs": {"src": "/media/a.png", "width": 10.5}, "content": [_text("c")]},
        _para(_text("x", "code")),
    )
    once = sanitize_editor_json(doc, FULL)
    assert sanitize_editor_json(once, FULL) == once


def test_rejects_wrong_signature_type():
    with pytest.raises(EditorConfigurationError):
        sanitize_editor_json(_doc(), BASIC, signature={"nodes": []})


def test_content_is_never_logged(caplog):
    secret = "TOP-SECRET-BODY"
    sanitize_editor_json(_doc({"type": "widget", "text": secret}), BASIC)
    for record in caplog.records:
        assert secret not in str(record.__dict__)
