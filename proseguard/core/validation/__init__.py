"""Stored-HTML validation.

HTML persisted alongside the editor document is only reused when it has
exactly the shape the renderer produces. Anything else is discarded and the
page is re-rendered from the sanitized tree.
"""

from .engine import DEFAULT_ENGINE, HtmlValidationEngine, default_rules, is_safe_editor_html, validate_editor_html
from .figure_block import validate_figure_block
from .models import DecisionStatus, ValidationDecision
from .rules import ALLOWED_TAGS, HtmlRule, HtmlSubject, scan_tags

__all__ = [
    "ALLOWED_TAGS",
    "DEFAULT_ENGINE",
    "DecisionStatus",
    "HtmlRule",
    "HtmlSubject",
    "HtmlValidationEngine",
    "ValidationDecision",
    "default_rules",
    "is_safe_editor_html",
    "scan_tags",
    "validate_editor_html",
    "validate_figure_block",
]
