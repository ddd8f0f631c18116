from .html_renderer import (
    EMPTY_DOCUMENT_HTML,
    escape_html,
    normalize_editor_html_whitespace,
    render_fallback_html,
    render_html,
)
from .prose import EDITOR_CLASSNAME, PROSE_CLASSNAME, PUBLIC_CONTENT_WRAPPER_CLASSNAME, wrap_with_prose
from .selector import RenderSelection, select_rendered_html

__all__ = [
    "EMPTY_DOCUMENT_HTML",
    "escape_html",
    "normalize_editor_html_whitespace",
    "render_fallback_html",
    "render_html",
    "EDITOR_CLASSNAME",
    "PROSE_CLASSNAME",
    "PUBLIC_CONTENT_WRAPPER_CLASSNAME",
    "wrap_with_prose",
    "RenderSelection",
    "select_rendered_html",
]
