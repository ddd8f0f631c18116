from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from proseguard.core.runtime.context import RenderContext
from proseguard.core.validation.engine import is_safe_editor_html
from proseguard.observability.render_logs import warn_with_context

from .html_renderer import render_fallback_html


@dataclass(frozen=True)
class RenderSelection:
    html: str
    from_stored: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"html": self.html, "fromStored": self.from_stored}


def select_rendered_html(json_input: Any, stored_html: Any, context: Any = None) -> RenderSelection:
    """Pick the HTML to serve for a stored document.

    Stored HTML is reused verbatim only when it validates; otherwise the page
    is rendered from the sanitized JSON tree.
    """

    ctx = RenderContext.coerce(context)

    has_stored = isinstance(stored_html, str) and stored_html.strip() != ""
    if has_stored:
        if is_safe_editor_html(stored_html, ctx):
            return RenderSelection(html=stored_html, from_stored=True)
        warn_with_context(ctx, "stored_html_invalid")

    return RenderSelection(html=render_fallback_html(json_input, ctx), from_stored=False)
