import pytest

from proseguard.core.normalization.image_figure import (
    ImageFigureAttrs,
    build_image_figure_node,
    normalize_dimension,
    normalize_image_figure_attrs,
)
from proseguard.core.normalization.media import is_allowed_image_src, normalize_origin_host

ORIGIN = "https://example.com"


def _fixed_id():
    return "imgcap-fixed0001"


def test_dimensions_are_clamped():
    attrs = normalize_image_figure_attrs({"src": "/media/x.png", "width": 99999, "height": -10})
    assert attrs is not None
    assert attrs.width == 8192
    assert attrs.height == 1


@pytest.mark.parametrize(
    "value, expected",
    [
        (640, 640),
        (12.9, 12),
        ("300", 300),
        (" 300.7 ", 300),
        ("-5", 1),
        ("99999999999999999999", 8192),
        ("-99999999999999999999", 1),
        ("12px", None),
        ("", None),
        (True, None),
        (float("nan"), None),
        (float("inf"), None),
        (None, None),
        ([640], None),
    ],
)
def test_normalize_dimension(value, expected):
    assert normalize_dimension(value) == expected


def test_defaults_for_size_align_alt():
    attrs = normalize_image_figure_attrs(
        {"src": "/media/a.png", "size": "huge", "align": "left", "alt": 5},
        id_factory=_fixed_id,
    )
    assert attrs == ImageFigureAttrs(
        src="/media/a.png",
        alt="",
        width=None,
        height=None,
        size="medium",
        align="center",
        caption_id="imgcap-fixed0001",
    )


def test_fallback_fills_missing_keys_only():
    fallback = {"src": "/media/old.png", "alt": "old alt", "size": "large", "align": "end", "captionId": "imgcap-previous1"}
    attrs = normalize_image_figure_attrs({"src": "/media/new.png", "size": "bogus"}, fallback)

    assert attrs.src == "/media/new.png"
    assert attrs.alt == "old alt"
    # present in raw, so the fallback is not consulted
    assert attrs.size == "medium"
    assert attrs.align == "end"
    assert attrs.caption_id == "imgcap-previous1"


def test_fallback_may_be_attrs_instance():
    previous = normalize_image_figure_attrs({"src": "/media/a.png", "alt": "kept", "width": 10}, id_factory=_fixed_id)
    attrs = normalize_image_figure_attrs({"width": 20}, previous)
    assert attrs.src == "/media/a.png"
    assert attrs.alt == "kept"
    assert attrs.width == 20
    assert attrs.caption_id == "imgcap-fixed0001"


def test_invalid_caption_id_is_regenerated():
    attrs = normalize_image_figure_attrs({"src": "/media/a.png", "captionId": "x\" onload=\"y"}, id_factory=_fixed_id)
    assert attrs.caption_id == "imgcap-fixed0001"


@pytest.mark.parametrize(
    "src",
    [
        "javascript:alert(1)",
        "data:image/png;base64,AAAA",
        "//evil.example/media/x.png",
        "https://evil.example/media/x.png",
        "/uploads/x.png",
        "/media/x.png?x=1",
        "/media/",
        "",
        None,
        42,
    ],
)
def test_rejected_sources(src):
    assert normalize_image_figure_attrs({"src": src}, origin=ORIGIN) is None


def test_same_origin_sources():
    assert is_allowed_image_src("/media/x.png", ORIGIN)
    assert is_allowed_image_src("https://example.com/media/x.png", ORIGIN)
    assert is_allowed_image_src("https://EXAMPLE.com/media/x.png", ORIGIN)
    assert not is_allowed_image_src("https://evil.example/media/x.png", ORIGIN)
    assert not is_allowed_image_src("https://example.com/media/x.png", None)


def test_src_is_trimmed():
    attrs = normalize_image_figure_attrs({"src": "  /media/x.png \n"})
    assert attrs.src == "/media/x.png"


def test_normalize_origin_host():
    assert normalize_origin_host("https://Example.com/path") == "example.com"
    assert normalize_origin_host("http://localhost:8787") == "localhost:8787"
    assert normalize_origin_host("https://user@example.com") == "example.com"
    assert normalize_origin_host("ftp://example.com") is None
    assert normalize_origin_host("http://example.com:99999") is None
    assert normalize_origin_host("") is None


def test_build_image_figure_node():
    node = build_image_figure_node("/media/a.png", alt="A", width="640", caption_text="  ")
    assert node["type"] == "imageFigure"
    assert node["content"] == []
    assert node["attrs"]["width"] == 640
    assert node["attrs"]["height"] is None

    captioned = build_image_figure_node("/media/a.png", caption_text="Sunset")
    assert captioned["content"] == [{"type": "text", "text": "Sunset"}]

    assert build_image_figure_node("https://evil.example/media/a.png", origin=ORIGIN) is None
