"""Read image figure attributes back out of rendered or pasted markup.

This is the inverse of the renderer's <figure> output and accepts either a
whole figure or a bare <img>. Values pass through the same normalizers as
JSON attributes, so nothing read here is trusted.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag

from proseguard.core.schema.signature import IMAGE_FIGURE_NODE

from .caption_ids import CaptionIdFactory, create_caption_id
from .image_figure import ImageFigureAttrs, normalize_image_figure_attrs

SIZE_CLASS_PREFIX = "editor-figure--size-"
ALIGN_CLASS_PREFIX = "editor-figure--align-"

_CAPTION_MARK_FOR_TAG = {
    "strong": "bold",
    "b": "bold",
    "em": "italic",
    "i": "italic",
    "code": "code",
}


def _parse(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)


def _class_token(figure: Optional[Tag], prefix: str) -> Optional[str]:
    if figure is None:
        return None
    value = figure.get("class")
    for token in value.split() if isinstance(value, str) else []:
        if token.startswith(prefix):
            return token[len(prefix):]
    return None


def _locate(markup: Any) -> Tuple[Optional[Tag], Optional[Tag]]:
    if not isinstance(markup, str):
        return None, None
    soup = _parse(markup)
    img = soup.find("img", src=True)
    if img is None:
        return None, None
    figure = img.find_parent("figure")
    return img, figure


def extract_image_figure_attrs(
    markup: Any,
    *,
    origin: Optional[str] = None,
    id_factory: CaptionIdFactory = create_caption_id,
) -> Optional[ImageFigureAttrs]:
    """Normalized attrs from the first <img src> in markup, or None."""

    img, figure = _locate(markup)
    if img is None:
        return None

    figcaption = figure.find("figcaption") if figure is not None else None
    raw = {
        "src": img.get("src"),
        "alt": img.get("alt"),
        "width": img.get("width"),
        "height": img.get("height"),
        "size": _class_token(figure, SIZE_CLASS_PREFIX),
        "align": _class_token(figure, ALIGN_CLASS_PREFIX),
        "captionId": figcaption.get("id") if figcaption is not None else None,
    }
    return normalize_image_figure_attrs(raw, origin=origin, id_factory=id_factory)


def _caption_nodes(element: Tag, marks: Tuple[str, ...], out: List[Dict[str, Any]]) -> None:
    for child in element.children:
        if isinstance(child, Tag):
            if child.name == "br":
                out.append({"type": "hardBreak"})
                continue
            mark = _CAPTION_MARK_FOR_TAG.get(child.name)
            child_marks = marks + (mark,) if mark and mark not in marks else marks
            _caption_nodes(child, child_marks, out)
        elif type(child) is NavigableString and str(child):
            node: Dict[str, Any] = {"type": "text", "text": str(child)}
            if marks:
                node["marks"] = [{"type": m} for m in marks]
            out.append(node)


def image_figure_node_from_markup(
    markup: Any,
    *,
    origin: Optional[str] = None,
    id_factory: CaptionIdFactory = create_caption_id,
) -> Optional[Dict[str, Any]]:
    """Build an imageFigure node (attrs plus caption content) from markup."""

    img, figure = _locate(markup)
    if img is None:
        return None
    attrs = extract_image_figure_attrs(markup, origin=origin, id_factory=id_factory)
    if attrs is None:
        return None

    content: List[Dict[str, Any]] = []
    figcaption = figure.find("figcaption") if figure is not None else None
    if figcaption is not None:
        _caption_nodes(figcaption, (), content)
    return {"type": IMAGE_FIGURE_NODE, "attrs": attrs.to_dict(), "content": content}
