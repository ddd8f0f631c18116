from __future__ import annotations

from proseguard.core.schema.classnames import EDITOR_CLASSNAME, PROSE_CLASSNAME, PUBLIC_CONTENT_WRAPPER_CLASSNAME

from .html_renderer import escape_html

__all__ = ["EDITOR_CLASSNAME", "PROSE_CLASSNAME", "PUBLIC_CONTENT_WRAPPER_CLASSNAME", "wrap_with_prose"]


def wrap_with_prose(html: str, class_name: str = PUBLIC_CONTENT_WRAPPER_CLASSNAME) -> str:
    """Wrap a rendered fragment in the shared prose container."""
    return f'<article class="{escape_html(class_name)}">{html}</article>'
