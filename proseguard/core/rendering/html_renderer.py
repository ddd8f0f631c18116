from __future__ import annotations

import html
import re
from typing import Any, Dict, List, Mapping, Optional

from proseguard.core.normalization.document import DEFAULT_HEADING_LEVEL, HEADING_LEVELS, sanitize_editor_json
from proseguard.core.normalization.image_figure import normalize_align, normalize_size
from proseguard.core.runtime.context import RenderContext
from proseguard.core.schema.profiles import EditorProfile, resolve_editor_profile
from proseguard.core.schema.signature import IMAGE_FIGURE_NODE

EMPTY_DOCUMENT_HTML = "<p></p>"

_MARK_TAGS: Dict[str, str] = {
    "bold": "strong",
    "italic": "em",
    "strike": "s",
    "code": "code",
}
_CAPTION_MARK_TAGS: Dict[str, str] = {k: v for k, v in _MARK_TAGS.items() if k != "strike"}

_BLOCK_TAGS: Dict[str, str] = {
    "blockquote": "blockquote",
    "bulletList": "ul",
    "orderedList": "ol",
    "listItem": "li",
}

_EMPTY_PARAGRAPH_PATTERN = re.compile(r"<p(\s[^>]*)?>\s*</p>", re.IGNORECASE)


_SCRIPT_SCHEME_PATTERN = re.compile(r"(javascript):", re.IGNORECASE)


def encode_script_scheme(markup: str) -> str:
    """Entity-encode the colon of any literal "javascript:".

    It renders the same but keeps the output acceptable to the stored-HTML
    validator, which rejects the literal scheme anywhere. Adjacent text runs
    can form the scheme only once joined, so joined output goes through here
    too.
    """
    return _SCRIPT_SCHEME_PATTERN.sub(r"\1&#58;", markup)


def escape_html(value: str) -> str:
    """Escape text and attribute values."""
    return encode_script_scheme(html.escape(value, quote=True))


def render_marks(text: str, marks: Any, tags: Mapping[str, str] = _MARK_TAGS) -> str:
    """Wrap escaped text in mark tags, first mark innermost.

    The nesting order matches the editor's own serializer; changing it breaks
    parity between stored and regenerated HTML.
    """

    out = escape_html(text)
    for mark in marks if isinstance(marks, list) else []:
        mark_type = mark.get("type") if isinstance(mark, Mapping) else None
        tag = tags.get(mark_type) if isinstance(mark_type, str) else None
        if tag:
            out = f"<{tag}>{out}</{tag}>"
    return out


def _text_of(node: Mapping[str, Any]) -> str:
    text = node.get("text")
    return text if isinstance(text, str) else ""


def render_inline(content: Any) -> str:
    parts: List[str] = []
    for node in content if isinstance(content, list) else []:
        node_type = node.get("type") if isinstance(node, Mapping) else None
        if node_type == "text":
            parts.append(render_marks(_text_of(node), node.get("marks")))
        elif node_type == "hardBreak":
            parts.append("<br />")
    return encode_script_scheme("".join(parts))


def render_caption(content: Any) -> str:
    parts: List[str] = []
    for node in content if isinstance(content, list) else []:
        node_type = node.get("type") if isinstance(node, Mapping) else None
        if node_type == "text":
            parts.append(render_marks(_text_of(node), node.get("marks"), _CAPTION_MARK_TAGS))
        elif node_type == "hardBreak":
            parts.append("<br/>")
    return encode_script_scheme("".join(parts))


def render_image_figure(node: Mapping[str, Any]) -> str:
    attrs = node.get("attrs")
    attrs = attrs if isinstance(attrs, Mapping) else {}
    size = normalize_size(attrs.get("size"))
    align = normalize_align(attrs.get("align"))
    caption_id = str(attrs.get("captionId") or "")

    caption_html = render_caption(node.get("content"))

    img_attrs = [
        'class="editor-image"',
        f'src="{escape_html(str(attrs.get("src") or ""))}"',
        f'alt="{escape_html(str(attrs.get("alt") or ""))}"',
        'loading="lazy"',
        'decoding="async"',
    ]
    for key in ("width", "height"):
        value = attrs.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            img_attrs.append(f'{key}="{value}"')
    if caption_html.strip():
        img_attrs.append(f'aria-describedby="{escape_html(caption_id)}"')

    figure_class = f"editor-figure editor-figure--size-{size} editor-figure--align-{align}"
    return (
        f'<figure class="{figure_class}">'
        f"<img {' '.join(img_attrs)} />"
        f'<figcaption class="editor-figcaption" id="{escape_html(caption_id)}">{caption_html}</figcaption>'
        "</figure>"
    )


def _code_text(content: Any) -> str:
    return "\n".join(
        _text_of(child)
        for child in (content if isinstance(content, list) else [])
        if isinstance(child, Mapping) and child.get("type") == "text"
    )


def render_nodes(content: Any, profile: EditorProfile) -> str:
    parts: List[str] = []
    for node in content if isinstance(content, list) else []:
        if not isinstance(node, Mapping):
            continue
        node_type = node.get("type")

        if node_type == "paragraph":
            parts.append(f"<p>{render_inline(node.get('content'))}</p>")
        elif node_type == "heading":
            attrs = node.get("attrs")
            level = attrs.get("level") if isinstance(attrs, Mapping) else None
            if not isinstance(level, int) or isinstance(level, bool) or level not in HEADING_LEVELS:
                level = DEFAULT_HEADING_LEVEL
            parts.append(f"<h{level}>{render_inline(node.get('content'))}</h{level}>")
        elif node_type in _BLOCK_TAGS:
            tag = _BLOCK_TAGS[node_type]
            parts.append(f"<{tag}>{render_nodes(node.get('content'), profile)}</{tag}>")
        elif node_type == "codeBlock":
            parts.append(f"<pre><code>{escape_html(_code_text(node.get('content')))}</code></pre>")
        elif node_type == "horizontalRule":
            parts.append("<hr />")
        elif node_type == "hardBreak":
            parts.append("<br />")
        elif node_type == "text":
            parts.append(render_marks(_text_of(node), node.get("marks")))
        elif node_type == IMAGE_FIGURE_NODE:
            # Second line of defence: basic never renders figures, even if a
            # caller hands over an unsanitized tree.
            if profile is EditorProfile.FULL:
                parts.append(render_image_figure(node))
        # Unknown types render nothing.
    return "".join(parts)


def render_html(doc: Any, profile: Any = None) -> str:
    """Serialize a sanitized document. Never returns an empty string."""

    content = doc.get("content") if isinstance(doc, Mapping) else None
    rendered = encode_script_scheme(render_nodes(content, resolve_editor_profile(profile)))
    return rendered or EMPTY_DOCUMENT_HTML


def normalize_editor_html_whitespace(markup: str) -> str:
    """Turn blank paragraphs into line breaks so they keep their height."""

    def _replace(match: "re.Match[str]") -> str:
        attrs = (match.group(1) or "").strip()
        suffix = f" {attrs}" if attrs else ""
        return f"<p{suffix}><br /></p>"

    return _EMPTY_PARAGRAPH_PATTERN.sub(_replace, markup)


def render_fallback_html(json_input: Any, context: Any = None) -> str:
    """Sanitize then render. Returns the empty-document placeholder when the
    input cannot be used at all.
    """

    ctx = RenderContext.coerce(context)
    sanitized: Optional[Dict[str, Any]] = sanitize_editor_json(json_input, ctx)
    if sanitized is None:
        return EMPTY_DOCUMENT_HTML
    return normalize_editor_html_whitespace(render_html(sanitized, ctx.profile))
