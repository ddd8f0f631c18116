"""Structural validation of a single <figure> span.

The accepted shape is exactly what the renderer emits for an image figure:

    <figure class="editor-figure editor-figure--size-X editor-figure--align-Y">
      <img class="editor-image" src alt loading="lazy" decoding="async" [width] [height] [aria-describedby] />
      <figcaption class="editor-figcaption" id="imgcap-...">inline caption</figcaption>
    </figure>
"""

from __future__ import annotations

import re
from typing import List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from proseguard.core.normalization.caption_ids import is_valid_caption_id
from proseguard.core.normalization.image_figure import IMAGE_FIGURE_ALIGNS, IMAGE_FIGURE_SIZES, MAX_DIMENSION, MIN_DIMENSION
from proseguard.core.normalization.media import is_allowed_image_src

FIGURE_CLASS = "editor-figure"
FIGURE_SIZE_PREFIX = "editor-figure--size-"
FIGURE_ALIGN_PREFIX = "editor-figure--align-"
IMAGE_CLASS = "editor-image"
FIGCAPTION_CLASS = "editor-figcaption"

IMG_ALLOWED_ATTRS = frozenset({"src", "alt", "width", "height", "loading", "decoding", "class", "aria-describedby"})
FIGCAPTION_ALLOWED_ATTRS = frozenset({"class", "id"})
CAPTION_INLINE_TAGS = frozenset({"strong", "em", "code", "br"})

_DIMENSION_PATTERN = re.compile(r"^[0-9]{1,5}\Z")


def parse_fragment(markup: str, duplicates: Optional[List[str]] = None) -> BeautifulSoup:
    """Parse an HTML fragment with single-valued attributes.

    When duplicates is given, every repeated attribute name is appended to it.
    """

    def _on_duplicate(attrs, key, value) -> None:
        if duplicates is not None:
            duplicates.append(key)

    return BeautifulSoup(
        markup,
        "html.parser",
        multi_valued_attributes=None,
        on_duplicate_attribute=_on_duplicate,
    )


def _figure_class_ok(value: object) -> bool:
    if not isinstance(value, str):
        return False
    tokens = value.split()
    if len(tokens) != 3 or tokens.count(FIGURE_CLASS) != 1:
        return False
    sizes = [t for t in tokens if t.startswith(FIGURE_SIZE_PREFIX)]
    aligns = [t for t in tokens if t.startswith(FIGURE_ALIGN_PREFIX)]
    if len(sizes) != 1 or len(aligns) != 1:
        return False
    return (
        sizes[0][len(FIGURE_SIZE_PREFIX):] in IMAGE_FIGURE_SIZES
        and aligns[0][len(FIGURE_ALIGN_PREFIX):] in IMAGE_FIGURE_ALIGNS
    )


def _dimension_ok(value: object) -> bool:
    if not isinstance(value, str) or not _DIMENSION_PATTERN.match(value):
        return False
    return MIN_DIMENSION <= int(value) <= MAX_DIMENSION


def _check_image(img: Tag, origin: Optional[str]) -> Optional[str]:
    attrs = img.attrs
    if not set(attrs) <= IMG_ALLOWED_ATTRS:
        return "image_attribute_not_allowed"
    if attrs.get("class") != IMAGE_CLASS:
        return "image_class_invalid"
    if not is_allowed_image_src(attrs.get("src"), origin):
        return "image_src_invalid"
    if "alt" not in attrs:
        return "image_alt_missing"
    for key in ("width", "height"):
        if key in attrs and not _dimension_ok(attrs[key]):
            return "image_dimension_invalid"
    if attrs.get("loading") != "lazy":
        return "image_loading_invalid"
    if attrs.get("decoding") != "async":
        return "image_decoding_invalid"
    if "aria-describedby" in attrs and not is_valid_caption_id(attrs["aria-describedby"]):
        return "image_describedby_invalid"
    return None


def _check_figcaption(figcaption: Tag) -> Optional[str]:
    attrs = figcaption.attrs
    if not set(attrs) <= FIGCAPTION_ALLOWED_ATTRS:
        return "figcaption_attribute_not_allowed"
    if attrs.get("class") != FIGCAPTION_CLASS:
        return "figcaption_class_invalid"
    if not is_valid_caption_id(attrs.get("id")):
        return "figcaption_id_invalid"
    for tag in figcaption.find_all(True):
        if tag.name not in CAPTION_INLINE_TAGS:
            return "figcaption_unexpected_tag"
    return None


def caption_has_content(figcaption: Tag) -> bool:
    """Non-blank caption markup. A lone <br/> counts as content."""
    return bool(figcaption.decode_contents().strip())


def validate_figure_block(markup: str, origin: Optional[str] = None) -> Optional[str]:
    """Validate one <figure>...</figure> span.

    Returns None when the span is acceptable, otherwise a short reason token.

    Security notes:
    - Fail closed: anything the renderer could not have produced is rejected.
    """

    duplicates: List[str] = []
    soup = parse_fragment(markup, duplicates)
    if duplicates:
        return "figure_duplicate_attribute"

    figures = soup.find_all("figure")
    if len(figures) != 1:
        return "figure_nested"
    figure = figures[0]

    if set(figure.attrs) != {"class"}:
        return "figure_attribute_not_allowed"
    if not _figure_class_ok(figure.attrs.get("class")):
        return "figure_class_invalid"

    children: List[Tag] = []
    for child in figure.children:
        if isinstance(child, Tag):
            children.append(child)
        elif type(child) is NavigableString and not child.strip():
            continue
        else:
            return "figure_unexpected_content"

    if sorted(c.name for c in children) != ["figcaption", "img"]:
        return "figure_structure_invalid"
    if len(figure.find_all("img")) != 1 or len(figure.find_all("figcaption")) != 1:
        return "figure_structure_invalid"

    img = figure.find("img", recursive=False)
    figcaption = figure.find("figcaption", recursive=False)

    reason = _check_image(img, origin) or _check_figcaption(figcaption)
    if reason:
        return reason

    described_by = img.attrs.get("aria-describedby")
    if caption_has_content(figcaption):
        if described_by is None:
            return "image_describedby_missing"
        if described_by != figcaption.attrs.get("id"):
            return "image_describedby_mismatch"
    elif described_by is not None:
        return "image_describedby_unexpected"

    return None
