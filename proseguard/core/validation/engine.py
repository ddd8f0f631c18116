from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from proseguard.core.runtime.context import RenderContext
from proseguard.observability.render_logs import warn_with_context

from .models import DecisionStatus, ValidationDecision
from .rules import (
    FigcaptionPlacementRule,
    FigureBlockRule,
    ForbiddenAttributeRule,
    ForbiddenTagRule,
    HtmlRule,
    HtmlSubject,
    ImageCountRule,
    ImageProfileRule,
    TagAllowlistRule,
)


def default_rules() -> List[HtmlRule]:
    return [
        ForbiddenTagRule(),
        ForbiddenAttributeRule(),
        ImageProfileRule(),
        TagAllowlistRule(),
        FigureBlockRule(),
        ImageCountRule(),
        FigcaptionPlacementRule(),
    ]


@dataclass(frozen=True)
class HtmlValidationEngine:
    """
    Evaluates HtmlRule objects in order against stored HTML.

    Security invariants
    - Deterministic evaluation order (as provided)
    - First DENY wins; a rule that raises counts as a DENY
    - Type checks all rules at construction time
    """

    rules: List[HtmlRule] = field(default_factory=default_rules)
    default_rule_id: str = "default-allow"

    def __post_init__(self) -> None:
        if not isinstance(self.default_rule_id, str) or not self.default_rule_id:
            raise ValueError("default_rule_id must be a non-empty string")
        if not isinstance(self.rules, list):
            raise TypeError("rules must be a list of HtmlRule instances")

        for r in self.rules:
            if not isinstance(r, HtmlRule):
                raise TypeError("All rules must be HtmlRule instances")

    def evaluate(self, subject: HtmlSubject) -> ValidationDecision:
        if not isinstance(subject, HtmlSubject):
            raise TypeError("subject must be an HtmlSubject instance")

        for rule in self.rules:
            try:
                decision = rule.evaluate(subject)
            except Exception as e:
                return ValidationDecision(
                    status=DecisionStatus.DENY,
                    rule_id=getattr(rule, "rule_id", "unknown-rule"),
                    reason=f"rule_exception:{e.__class__.__name__}",
                    figure_count=len(subject.figure_spans),
                )
            if decision is not None and decision.status is DecisionStatus.DENY:
                return decision

        return ValidationDecision(
            status=DecisionStatus.ALLOW,
            rule_id=self.default_rule_id,
            figure_count=len(subject.figure_spans),
        )


DEFAULT_ENGINE = HtmlValidationEngine()


def validate_editor_html(html: Any, context: Any = None, *, engine: HtmlValidationEngine = DEFAULT_ENGINE) -> ValidationDecision:
    """Run the stored-HTML rules and return the decision record.

    Empty markup is allowed; anything that is not a string is denied.
    """

    if not isinstance(html, str):
        return ValidationDecision(status=DecisionStatus.DENY, rule_id="input-type", reason="not_a_string")
    return engine.evaluate(HtmlSubject.from_html(html, context))


def is_safe_editor_html(html: Any, context: Any = None) -> bool:
    """True when stored HTML matches the renderer's safe output shape.

    Every rejection is logged with the rule and reason.
    """

    ctx = RenderContext.coerce(context)
    decision = validate_editor_html(html, ctx)
    if not decision.allowed:
        details = dict(decision.metadata or {})
        warn_with_context(ctx, decision.reason or "html_rejected", rule=decision.rule_id, **details)
    return decision.allowed
