import logging

from proseguard.core.rendering.selector import RenderSelection, select_rendered_html

CONTEXT = {"profile": "full", "origin": "https://example.com", "slug": "about", "documentId": "hero"}


def _figure_doc(caption="Stored caption", **attrs):
    base = {
        "src": "/media/demo.webp",
        "alt": "Demo alt",
        "width": 640,
        "height": 480,
        "size": "medium",
        "align": "center",
        "captionId": "imgcap-abcdefghij",
    }
    base.update(attrs)
    content = [{"type": "text", "text": caption, "marks": [{"type": "bold"}]}] if caption else []
    return {"type": "doc", "content": [{"type": "imageFigure", "attrs": base, "content": content}]}


def test_valid_stored_html_is_used_verbatim():
    stored = "<p>Stored <strong>copy</strong></p>"
    selection = select_rendered_html(_figure_doc(), stored, CONTEXT)
    assert selection == RenderSelection(html=stored, from_stored=True)
    assert selection.to_dict() == {"html": stored, "fromStored": True}


def test_script_in_stored_html_falls_back_to_json(caplog):
    caplog.set_level(logging.WARNING, logger="proseguard.render")
    selection = select_rendered_html(_figure_doc(), "<script>evil()</script>", CONTEXT)

    assert selection.from_stored is False
    assert "<script" not in selection.html
    assert "/media/demo.webp" in selection.html
    reasons = [getattr(r, "reason", None) for r in caplog.records]
    assert "forbidden_tag" in reasons
    assert reasons[-1] == "stored_html_invalid"


def test_invalid_stored_figure_falls_back_to_json():
    invalid = (
        '<figure class="editor-figure"><img class="editor-image" src="https://cdn.example.com/media/invalid.jpg" '
        'alt="bad" loading="lazy" decoding="async" /><figcaption class="editor-figcaption" id="invalid">Bad</figcaption></figure>'
    )
    selection = select_rendered_html(_figure_doc(alt="Stored alt"), invalid, CONTEXT)
    assert selection.from_stored is False
    assert "/media/demo.webp" in selection.html
    assert "editor-figure--size-medium" in selection.html
    assert 'aria-describedby="imgcap-abcdefghij"' in selection.html


def test_missing_stored_html_renders_without_warning(caplog):
    caplog.set_level(logging.WARNING, logger="proseguard.render")
    for stored in (None, "", "   "):
        selection = select_rendered_html({"type": "doc", "content": []}, stored, CONTEXT)
        assert selection == RenderSelection(html="<p><br /></p>", from_stored=False)
    assert caplog.records == []


def test_unusable_json_without_stored_html_gives_placeholder():
    selection = select_rendered_html("not json", 123, CONTEXT)
    assert selection.html == "<p></p>"
    assert not selection.from_stored


def test_basic_profile_rejects_stored_images():
    stored = select_rendered_html(_figure_doc(), "<p>ok</p>", CONTEXT).html
    full_html = select_rendered_html(_figure_doc(), None, CONTEXT).html
    selection = select_rendered_html(_figure_doc(), full_html, {"profile": "basic"})
    assert stored == "<p>ok</p>"
    assert not selection.from_stored
    assert "<img" not in selection.html
