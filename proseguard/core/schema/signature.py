from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Tuple

from proseguard.core.errors import EditorConfigurationError

from .profiles import EditorProfile

DOCUMENT_NODES: Tuple[str, ...] = ("doc",)
TEXT_NODES: Tuple[str, ...] = ("text",)
BLOCK_NODES: Tuple[str, ...] = (
    "paragraph",
    "heading",
    "blockquote",
    "bulletList",
    "orderedList",
    "listItem",
    "codeBlock",
)
LEAF_NODES: Tuple[str, ...] = ("hardBreak", "horizontalRule")

IMAGE_FIGURE_NODE: str = "imageFigure"
IMAGE_FIGURE_ATTRIBUTES: Tuple[str, ...] = ("src", "alt", "width", "height", "size", "align", "captionId")

BASE_MARK_TYPES: Tuple[str, ...] = ("bold", "italic", "strike", "code")
# Captions deliberately omit strike.
CAPTION_MARK_TYPES: Tuple[str, ...] = ("bold", "italic", "code")


def _frozen(*groups: Tuple[str, ...]) -> FrozenSet[str]:
    out: List[str] = []
    for g in groups:
        out.extend(g)
    return frozenset(out)


@dataclass(frozen=True)
class SchemaSignature:
    """
    Closed vocabulary of node and mark types accepted by the editor.

    Security invariants
    - Immutable configuration
    - Every set is a frozenset
    - The full profile is a strict superset of the basic profile
    """

    basic_nodes: FrozenSet[str] = field(
        default_factory=lambda: _frozen(DOCUMENT_NODES, TEXT_NODES, BLOCK_NODES, LEAF_NODES)
    )
    image_node: str = IMAGE_FIGURE_NODE
    container_nodes: FrozenSet[str] = field(default_factory=lambda: _frozen(DOCUMENT_NODES, BLOCK_NODES))
    mark_types: FrozenSet[str] = field(default_factory=lambda: frozenset(BASE_MARK_TYPES))
    caption_mark_types: FrozenSet[str] = field(default_factory=lambda: frozenset(CAPTION_MARK_TYPES))

    def __post_init__(self) -> None:
        for name in ("basic_nodes", "container_nodes", "mark_types", "caption_mark_types"):
            value = getattr(self, name)
            if not isinstance(value, frozenset):
                raise TypeError(f"{name} must be a frozenset")
        if not self.caption_mark_types <= self.mark_types:
            raise ValueError("caption_mark_types must be a subset of mark_types")
        if not self.container_nodes <= self.basic_nodes:
            raise ValueError("container_nodes must be a subset of basic_nodes")

    @property
    def full_nodes(self) -> FrozenSet[str]:
        return self.basic_nodes | {self.image_node}

    def nodes_for(self, profile: Any) -> FrozenSet[str]:
        if profile is EditorProfile.FULL or profile == EditorProfile.FULL.value:
            return self.full_nodes
        if profile is EditorProfile.BASIC or profile == EditorProfile.BASIC.value:
            return self.basic_nodes
        raise EditorConfigurationError(f"Unknown editor profile: {profile!r}")

    def describe(self) -> Dict[str, Any]:
        return {
            "nodes": {
                "document": list(DOCUMENT_NODES),
                "text": list(TEXT_NODES),
                "block": list(BLOCK_NODES),
                "leaf": list(LEAF_NODES),
                "optional": {"image": {"name": self.image_node, "attrs": list(IMAGE_FIGURE_ATTRIBUTES)}},
            },
            "marks": sorted(self.mark_types),
        }


SCHEMA_SIGNATURE = SchemaSignature()

EMPTY_EDITOR_DOC: Dict[str, Any] = {"type": "doc", "content": [{"type": "paragraph"}]}


def allowed_node_types_for_profile(profile: Any) -> FrozenSet[str]:
    """Node types legal for a profile.

    The profile must already be resolved (see resolve_editor_profile); an
    unknown value here is a wiring defect and raises EditorConfigurationError.
    """
    return SCHEMA_SIGNATURE.nodes_for(profile)


def allowed_container_node_types() -> FrozenSet[str]:
    return SCHEMA_SIGNATURE.container_nodes


def allowed_mark_types() -> FrozenSet[str]:
    return SCHEMA_SIGNATURE.mark_types


def allowed_caption_mark_types() -> FrozenSet[str]:
    return SCHEMA_SIGNATURE.caption_mark_types


def base_node_types() -> List[str]:
    return [*DOCUMENT_NODES, *TEXT_NODES, *BLOCK_NODES, *LEAF_NODES]


def base_mark_types() -> List[str]:
    return list(BASE_MARK_TYPES)


def optional_image_node() -> str:
    return SCHEMA_SIGNATURE.image_node


def optional_image_attributes() -> Tuple[str, ...]:
    return IMAGE_FIGURE_ATTRIBUTES
