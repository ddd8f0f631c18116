from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple

from proseguard.core.runtime.context import RenderContext
from proseguard.core.schema.profiles import EditorProfile

from .figure_block import validate_figure_block
from .models import DecisionStatus, ValidationDecision

ALLOWED_TAGS = frozenset(
    {
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "p",
        "blockquote",
        "ul",
        "ol",
        "li",
        "pre",
        "strong",
        "em",
        "s",
        "code",
        "br",
        "hr",
        "figure",
        "figcaption",
        "img",
    }
)
VOID_TAGS = frozenset({"br", "hr", "img"})

FORBIDDEN_TAG_PATTERN = re.compile(r"<\s*/?\s*(script|style|iframe|object|embed|link|meta|base)\b", re.IGNORECASE)
SCRIPT_SCHEME_PATTERN = re.compile(r"javascript:", re.IGNORECASE)
HANDLER_ATTR_PATTERN = re.compile(r"(?:^|[\s/\"'])on[a-z]+\s*=", re.IGNORECASE)
STYLE_ATTR_PATTERN = re.compile(r"(?:^|[\s/\"'])style\s*=", re.IGNORECASE)

TAG_PATTERN = re.compile(r"<(/?)([A-Za-z][A-Za-z0-9]*)(?=[\s/>])((?:\"[^\"]*\"|'[^']*'|[^'\">])*)>")
_QUOTED_VALUE_PATTERN = re.compile(r"\"[^\"]*\"|'[^']*'")

FIGURE_SPAN_PATTERN = re.compile(r"<figure\b[^>]*>.*?</figure\s*>", re.IGNORECASE | re.DOTALL)
FIGURE_OPEN_PATTERN = re.compile(r"<figure\b", re.IGNORECASE)
FIGURE_CLOSE_PATTERN = re.compile(r"</figure\s*>", re.IGNORECASE)
IMG_PATTERN = re.compile(r"<img\b", re.IGNORECASE)
FIGCAPTION_PATTERN = re.compile(r"<figcaption\b", re.IGNORECASE)


class ScannedTag(NamedTuple):
    name: str
    closing: bool
    attrs: str

    @property
    def self_closing(self) -> bool:
        return self.attrs.rstrip().endswith("/")

    def attribute_names_region(self) -> str:
        """Attribute text with quoted values blanked out."""
        return _QUOTED_VALUE_PATTERN.sub('""', self.attrs)


def scan_tags(markup: str) -> Optional[Tuple[ScannedTag, ...]]:
    """Split markup into tags, honouring quoted attribute values.

    Returns None when any "<" does not start a well-formed tag (comments,
    doctypes, processing instructions and stray brackets included).
    """

    tags: List[ScannedTag] = []
    pos = markup.find("<")
    while pos != -1:
        match = TAG_PATTERN.match(markup, pos)
        if match is None:
            return None
        tags.append(ScannedTag(match.group(2).lower(), bool(match.group(1)), match.group(3)))
        pos = markup.find("<", match.end())
    return tuple(tags)


@dataclass(frozen=True)
class HtmlSubject:
    """
    Immutable view of the HTML under validation.

    Built once per validation so every rule sees the same scan.
    """

    html: str
    context: RenderContext
    tags: Optional[Tuple[ScannedTag, ...]]
    figure_spans: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.html, str):
            raise TypeError("html must be a string")
        if not isinstance(self.context, RenderContext):
            raise TypeError("context must be a RenderContext")

    @classmethod
    def from_html(cls, html: str, context: object = None) -> "HtmlSubject":
        if not isinstance(html, str):
            raise TypeError("html must be a string")
        return cls(
            html=html,
            context=RenderContext.coerce(context),
            tags=scan_tags(html),
            figure_spans=tuple(m.group(0) for m in FIGURE_SPAN_PATTERN.finditer(html)),
        )


class HtmlRule:
    rule_id: str = "html-rule"

    def evaluate(self, subject: HtmlSubject) -> Optional[ValidationDecision]:
        raise NotImplementedError

    def deny(self, subject: HtmlSubject, reason: str, **metadata: object) -> ValidationDecision:
        return ValidationDecision(
            status=DecisionStatus.DENY,
            rule_id=self.rule_id,
            reason=reason,
            figure_count=len(subject.figure_spans),
            metadata=dict(metadata) or None,
        )


@dataclass(frozen=True)
class ForbiddenTagRule(HtmlRule):
    rule_id: str = "forbidden-tag"

    def evaluate(self, subject: HtmlSubject) -> Optional[ValidationDecision]:
        match = FORBIDDEN_TAG_PATTERN.search(subject.html)
        if match:
            return self.deny(subject, "forbidden_tag", tag=match.group(1).lower())
        return None


@dataclass(frozen=True)
class ForbiddenAttributeRule(HtmlRule):
    rule_id: str = "forbidden-attribute"

    def evaluate(self, subject: HtmlSubject) -> Optional[ValidationDecision]:
        if SCRIPT_SCHEME_PATTERN.search(subject.html):
            return self.deny(subject, "script_scheme")
        for tag in subject.tags or ():
            names = tag.attribute_names_region()
            if HANDLER_ATTR_PATTERN.search(names):
                return self.deny(subject, "event_handler_attribute", tag=tag.name)
            if STYLE_ATTR_PATTERN.search(names):
                return self.deny(subject, "style_attribute", tag=tag.name)
        return None


@dataclass(frozen=True)
class ImageProfileRule(HtmlRule):
    rule_id: str = "image-profile"

    def evaluate(self, subject: HtmlSubject) -> Optional[ValidationDecision]:
        if subject.context.profile is not EditorProfile.FULL and IMG_PATTERN.search(subject.html):
            return self.deny(subject, "image_disallowed_for_profile")
        return None


@dataclass(frozen=True)
class TagAllowlistRule(HtmlRule):
    """Only known tags, properly nested."""

    rule_id: str = "tag-allowlist"

    def evaluate(self, subject: HtmlSubject) -> Optional[ValidationDecision]:
        if subject.tags is None:
            return self.deny(subject, "malformed_markup")

        stack: List[str] = []
        for tag in subject.tags:
            if tag.name not in ALLOWED_TAGS:
                return self.deny(subject, "tag_not_allowed", tag=tag.name)
            if tag.closing:
                if tag.attrs.strip() or tag.name in VOID_TAGS:
                    return self.deny(subject, "malformed_markup", tag=tag.name)
                if not stack or stack.pop() != tag.name:
                    return self.deny(subject, "unbalanced_markup", tag=tag.name)
            elif tag.name in VOID_TAGS:
                continue
            elif tag.self_closing:
                return self.deny(subject, "malformed_markup", tag=tag.name)
            else:
                stack.append(tag.name)

        if stack:
            return self.deny(subject, "unbalanced_markup", tag=stack[-1])
        return None


@dataclass(frozen=True)
class FigureBlockRule(HtmlRule):
    rule_id: str = "figure-block"

    def evaluate(self, subject: HtmlSubject) -> Optional[ValidationDecision]:
        spans = subject.figure_spans
        opens = len(FIGURE_OPEN_PATTERN.findall(subject.html))
        closes = len(FIGURE_CLOSE_PATTERN.findall(subject.html))
        if opens != len(spans) or closes != len(spans):
            return self.deny(subject, "figure_count_mismatch")

        for index, span in enumerate(spans):
            if len(FIGURE_OPEN_PATTERN.findall(span)) != 1:
                return self.deny(subject, "figure_nested", figure=index)
            reason = validate_figure_block(span, subject.context.origin)
            if reason:
                return self.deny(subject, reason, figure=index)
        return None


@dataclass(frozen=True)
class ImageCountRule(HtmlRule):
    rule_id: str = "image-count"

    def evaluate(self, subject: HtmlSubject) -> Optional[ValidationDecision]:
        if len(IMG_PATTERN.findall(subject.html)) != len(subject.figure_spans):
            return self.deny(subject, "image_outside_figure")
        return None


@dataclass(frozen=True)
class FigcaptionPlacementRule(HtmlRule):
    rule_id: str = "figcaption-outside-figure"

    def evaluate(self, subject: HtmlSubject) -> Optional[ValidationDecision]:
        if len(FIGCAPTION_PATTERN.findall(subject.html)) != len(subject.figure_spans):
            return self.deny(subject, "figcaption_outside_figure")
        return None
