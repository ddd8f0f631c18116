from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from proseguard.core.errors import EditorConfigurationError
from proseguard.core.runtime.context import RenderContext
from proseguard.core.schema.signature import SCHEMA_SIGNATURE, SchemaSignature
from proseguard.observability.render_logs import warn_with_context

from .caption_ids import CaptionIdFactory, create_caption_id
from .image_figure import normalize_image_figure_attrs

INLINE_NODES = frozenset({"text", "hardBreak"})
LEAF_NODES = frozenset({"hardBreak", "horizontalRule"})
# Containers whose children must be inline.
INLINE_CONTAINERS = frozenset({"paragraph", "heading"})
HEADING_LEVELS = frozenset(range(1, 7))
DEFAULT_HEADING_LEVEL = 2
MAX_DEPTH = 64


@dataclass(frozen=True)
class _SanitizeOptions:
    context: RenderContext
    allowed_nodes: FrozenSet[str]
    container_nodes: FrozenSet[str]
    allowed_marks: FrozenSet[str]
    caption_marks: FrozenSet[str]
    image_node: str
    id_factory: CaptionIdFactory

    def warn(self, reason: str, **details: Any) -> None:
        warn_with_context(self.context, reason, **details)


def _sanitize_marks(marks: Any, allowed: FrozenSet[str], options: _SanitizeOptions) -> Optional[List[Dict[str, str]]]:
    if not isinstance(marks, list):
        return None

    out: List[Dict[str, str]] = []
    for mark in marks:
        if not isinstance(mark, Mapping):
            options.warn("invalid_mark", detail="not-object")
            continue
        mark_type = mark.get("type")
        if not isinstance(mark_type, str) or mark_type not in allowed:
            options.warn("invalid_mark", type=mark_type)
            continue
        out.append({"type": mark_type})
    return out or None


def _sanitize_text(node: Mapping[str, Any], allowed_marks: FrozenSet[str], options: _SanitizeOptions) -> Dict[str, Any]:
    text = node.get("text")
    out: Dict[str, Any] = {"type": "text", "text": text if isinstance(text, str) else ""}
    marks = _sanitize_marks(node.get("marks"), allowed_marks, options)
    if marks:
        out["marks"] = marks
    return out


def _heading_level(attrs: Any) -> Optional[int]:
    level = attrs.get("level") if isinstance(attrs, Mapping) else None
    if isinstance(level, bool):
        return None
    if isinstance(level, float) and level.is_integer():
        level = int(level)
    elif isinstance(level, str) and level.strip().isdigit():
        level = int(level.strip())
    if isinstance(level, int) and level in HEADING_LEVELS:
        return level
    return None


def _sanitize_caption(content: Any, options: _SanitizeOptions) -> List[Dict[str, Any]]:
    if not isinstance(content, list):
        return []

    out: List[Dict[str, Any]] = []
    for child in content:
        child_type = child.get("type") if isinstance(child, Mapping) else None
        if child_type == "text":
            out.append(_sanitize_text(child, options.caption_marks, options))
        elif child_type == "hardBreak":
            out.append({"type": "hardBreak"})
        else:
            options.warn("invalid_caption_node", type=child_type)
    return out


def _sanitize_code_block(content: Any, options: _SanitizeOptions) -> List[Dict[str, Any]]:
    parts: List[str] = []
    for child in content if isinstance(content, list) else []:
        child_type = child.get("type") if isinstance(child, Mapping) else None
        if child_type == "text":
            text = child.get("text")
            parts.append(text if isinstance(text, str) else "")
        elif child_type == "hardBreak":
            parts.append("\n")
        else:
            options.warn("invalid_node_position", type=child_type, parent="codeBlock")
    text = "".join(parts)
    return [{"type": "text", "text": text}] if text else []


def _sanitize_image_figure(node: Mapping[str, Any], options: _SanitizeOptions) -> Optional[Dict[str, Any]]:
    raw_attrs = node.get("attrs")
    attrs = normalize_image_figure_attrs(
        raw_attrs,
        origin=options.context.origin,
        id_factory=options.id_factory,
    )
    if attrs is None:
        raw_src = raw_attrs.get("src") if isinstance(raw_attrs, Mapping) else None
        options.warn("invalid_image_src", src=raw_src if isinstance(raw_src, str) else None)
        return None

    return {
        "type": options.image_node,
        "attrs": attrs.to_dict(),
        "content": _sanitize_caption(node.get("content"), options),
    }


def _sanitize_children(content: Any, options: _SanitizeOptions, *, parent: str, depth: int) -> List[Dict[str, Any]]:
    if not isinstance(content, list):
        return []
    inline_only = parent in INLINE_CONTAINERS
    out: List[Dict[str, Any]] = []
    for child in content:
        sanitized = _sanitize_node(child, options, parent=parent, inline_only=inline_only, depth=depth)
        if sanitized is not None:
            out.append(sanitized)
    return out


def _sanitize_node(
    node: Any,
    options: _SanitizeOptions,
    *,
    parent: str,
    inline_only: bool,
    depth: int,
) -> Optional[Dict[str, Any]]:
    if not isinstance(node, Mapping):
        options.warn("invalid_node_type", detail="not-object")
        return None

    node_type = node.get("type")
    if not isinstance(node_type, str):
        options.warn("invalid_node_type", detail="missing-type")
        return None

    if node_type == options.image_node and node_type not in options.allowed_nodes:
        options.warn("image_disallowed_for_profile")
        return None

    if node_type not in options.allowed_nodes or node_type == "doc":
        options.warn("invalid_node_type", type=node_type)
        return None

    if inline_only and node_type not in INLINE_NODES:
        options.warn("invalid_node_position", type=node_type, parent=parent)
        return None

    if depth > MAX_DEPTH:
        options.warn("max_depth_exceeded", type=node_type)
        return None

    if node_type == "text":
        return _sanitize_text(node, options.allowed_marks, options)

    if node_type in LEAF_NODES:
        return {"type": node_type}

    if node_type == options.image_node:
        return _sanitize_image_figure(node, options)

    if node_type == "codeBlock":
        return {"type": node_type, "content": _sanitize_code_block(node.get("content"), options)}

    if node_type not in options.container_nodes:
        # Allowed but childless types are handled above; reaching here means
        # the signature and this walker disagree.
        raise EditorConfigurationError(f"No sanitization rule for node type: {node_type}")

    children = _sanitize_children(node.get("content"), options, parent=node_type, depth=depth + 1)

    if node_type == "heading":
        level = _heading_level(node.get("attrs"))
        if level is None:
            options.warn("invalid_heading_level", value=_raw_level(node.get("attrs")))
            level = DEFAULT_HEADING_LEVEL
        return {"type": node_type, "attrs": {"level": level}, "content": children}

    return {"type": node_type, "content": children}


def _raw_level(attrs: Any) -> Any:
    level = attrs.get("level") if isinstance(attrs, Mapping) else None
    return level if isinstance(level, (int, float, str)) or level is None else type(level).__name__


def sanitize_editor_json(
    json_input: Any,
    context: Any = None,
    *,
    signature: SchemaSignature = SCHEMA_SIGNATURE,
    id_factory: CaptionIdFactory = create_caption_id,
) -> Optional[Dict[str, Any]]:
    """Walk an untrusted editor document against the schema signature.

    Returns a well-formed doc (possibly with empty content), or None when the
    top-level shape itself is unusable. Offending nodes and marks are dropped
    and logged; siblings are kept.

    Security notes:
    - Treat all inputs as attacker-controlled.
    - Never raises for input problems; a missing signature is a wiring defect.
    """

    if not isinstance(signature, SchemaSignature):
        raise EditorConfigurationError("sanitize_editor_json requires a SchemaSignature")

    ctx = RenderContext.coerce(context)

    if isinstance(json_input, str):
        try:
            json_input = json.loads(json_input)
        except (ValueError, RecursionError):
            warn_with_context(ctx, "json_parse_failed")
            return None

    if (
        not isinstance(json_input, Mapping)
        or json_input.get("type") != "doc"
        or not isinstance(json_input.get("content"), list)
    ):
        warn_with_context(ctx, "invalid_document")
        return None

    options = _SanitizeOptions(
        context=ctx,
        allowed_nodes=signature.nodes_for(ctx.profile),
        container_nodes=signature.container_nodes,
        allowed_marks=signature.mark_types,
        caption_marks=signature.caption_mark_types,
        image_node=signature.image_node,
        id_factory=id_factory,
    )

    content = _sanitize_children(json_input["content"], options, parent="doc", depth=1)
    return {"type": "doc", "content": content}
