"""Normalization helpers for editor documents.

Normalization maps untrusted editor JSON (and figure markup) onto the closed
schema the renderer understands.

Security notes:
- Never assume input is well-formed or benign.
- Keep transforms deterministic and strictly bounded.
"""

from .caption_ids import CAPTION_ID_PATTERN, create_caption_id, ensure_caption_id, is_valid_caption_id
from .document import MAX_DEPTH, sanitize_editor_json
from .figure_markup import extract_image_figure_attrs, image_figure_node_from_markup
from .image_figure import (
    IMAGE_FIGURE_ALIGNS,
    IMAGE_FIGURE_SIZES,
    ImageFigureAttrs,
    build_image_figure_node,
    normalize_dimension,
    normalize_image_figure_attrs,
)
from .media import is_allowed_image_src, normalize_origin_host

__all__ = [
    "CAPTION_ID_PATTERN",
    "create_caption_id",
    "ensure_caption_id",
    "is_valid_caption_id",
    "MAX_DEPTH",
    "sanitize_editor_json",
    "extract_image_figure_attrs",
    "image_figure_node_from_markup",
    "IMAGE_FIGURE_ALIGNS",
    "IMAGE_FIGURE_SIZES",
    "ImageFigureAttrs",
    "build_image_figure_node",
    "normalize_dimension",
    "normalize_image_figure_attrs",
    "is_allowed_image_src",
    "normalize_origin_host",
]
