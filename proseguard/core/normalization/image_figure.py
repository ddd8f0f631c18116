from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from proseguard.core.schema.signature import IMAGE_FIGURE_NODE

from .caption_ids import CaptionIdFactory, create_caption_id, ensure_caption_id
from .media import is_allowed_image_src

IMAGE_FIGURE_SIZES: Tuple[str, ...] = ("original", "large", "medium", "small")
IMAGE_FIGURE_ALIGNS: Tuple[str, ...] = ("start", "center", "end")
DEFAULT_SIZE = "medium"
DEFAULT_ALIGN = "center"

MIN_DIMENSION = 1
MAX_DIMENSION = 8192

_NUMERIC_STRING = re.compile(r"^-?\d+(\.\d+)?\Z")


@dataclass(frozen=True)
class ImageFigureAttrs:
    """Normalized attribute set of an image figure.

    Instances are only produced by normalize_image_figure_attrs, so every
    field already satisfies the figure invariants.
    """

    src: str
    alt: str
    width: Optional[int]
    height: Optional[int]
    size: str
    align: str
    caption_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "src": self.src,
            "alt": self.alt,
            "width": self.width,
            "height": self.height,
            "size": self.size,
            "align": self.align,
            "captionId": self.caption_id,
        }


def _clamp(value: int) -> int:
    return min(max(value, MIN_DIMENSION), MAX_DIMENSION)


def normalize_dimension(value: Any) -> Optional[int]:
    """Truncate to an int and clamp to [1, 8192]; None when unparsable."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return _clamp(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return _clamp(math.trunc(value))
    if isinstance(value, str):
        trimmed = value.strip()
        if not _NUMERIC_STRING.match(trimmed):
            return None
        whole = trimmed.split(".", 1)[0]
        digits = whole.lstrip("-")
        if len(digits) > 9:
            return MIN_DIMENSION if whole.startswith("-") else MAX_DIMENSION
        return _clamp(int(whole))
    return None


def normalize_size(value: Any) -> str:
    return value if isinstance(value, str) and value in IMAGE_FIGURE_SIZES else DEFAULT_SIZE


def normalize_align(value: Any) -> str:
    return value if isinstance(value, str) and value in IMAGE_FIGURE_ALIGNS else DEFAULT_ALIGN


def normalize_alt(value: Any) -> str:
    return value if isinstance(value, str) else ""


def normalize_src(value: Any, origin: Optional[str] = None) -> Optional[str]:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed if is_allowed_image_src(trimmed, origin) else None


def _fallback_map(fallback: Any) -> Mapping[str, Any]:
    if fallback is None:
        return {}
    if isinstance(fallback, ImageFigureAttrs):
        return fallback.to_dict()
    if isinstance(fallback, Mapping):
        return fallback
    return {}


def normalize_image_figure_attrs(
    raw: Any,
    fallback: Any = None,
    *,
    origin: Optional[str] = None,
    id_factory: CaptionIdFactory = create_caption_id,
) -> Optional[ImageFigureAttrs]:
    """Validate and repair an untrusted image figure attribute mapping.

    Keys missing from raw are taken from fallback. Returns None when the src
    is unusable; every other field is repaired rather than rejected.

    Security notes:
    - src must be a /media/ path or an absolute media URL on origin's host.
    - Treat all values as attacker-controlled (wrong types, huge numbers).
    """

    attrs: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    fb = _fallback_map(fallback)

    def pick(key: str) -> Any:
        return attrs[key] if key in attrs else fb.get(key)

    src = normalize_src(pick("src"), origin)
    if src is None:
        return None

    return ImageFigureAttrs(
        src=src,
        alt=normalize_alt(pick("alt")),
        width=normalize_dimension(pick("width")),
        height=normalize_dimension(pick("height")),
        size=normalize_size(pick("size")),
        align=normalize_align(pick("align")),
        caption_id=ensure_caption_id(pick("captionId"), id_factory),
    )


def build_image_figure_node(
    src: str,
    *,
    alt: str = "",
    width: Any = None,
    height: Any = None,
    size: str = DEFAULT_SIZE,
    align: str = DEFAULT_ALIGN,
    caption_text: str = "",
    origin: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Build a storable imageFigure node for a freshly inserted image.

    Returns None when src is rejected. A blank caption yields empty content.
    """

    attrs = normalize_image_figure_attrs(
        {"src": src, "alt": alt, "width": width, "height": height, "size": size, "align": align},
        origin=origin,
    )
    if attrs is None:
        return None

    content = [{"type": "text", "text": caption_text}] if caption_text.strip() else []
    return {"type": IMAGE_FIGURE_NODE, "attrs": attrs.to_dict(), "content": content}
