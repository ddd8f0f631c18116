from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from proseguard.core.schema.profiles import DEFAULT_EDITOR_PROFILE, EditorProfile, resolve_editor_profile


def _optional_str(name: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string or None")
    stripped = value.strip()
    return stripped or None


@dataclass(frozen=True)
class RenderContext:
    """
    Immutable per-call render input.

    Security and correctness
    profile is always a resolved EditorProfile (unknown values degrade to basic)
    origin is the only source of truth for same-origin image checks
    use with_updates to derive contexts rather than mutating in place
    """

    profile: EditorProfile = DEFAULT_EDITOR_PROFILE
    slug: Optional[str] = None
    document_id: Optional[str] = None
    origin: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "profile", resolve_editor_profile(self.profile))
        object.__setattr__(self, "slug", _optional_str("slug", self.slug))
        object.__setattr__(self, "document_id", _optional_str("document_id", self.document_id))
        object.__setattr__(self, "origin", _optional_str("origin", self.origin))

    @classmethod
    def coerce(cls, value: Any = None) -> "RenderContext":
        """Build a context from None, a mapping, or an existing RenderContext.

        Mapping keys: profile, slug, documentId (or document_id), origin.
        """

        if value is None:
            return cls()
        if isinstance(value, RenderContext):
            return value
        if not isinstance(value, Mapping):
            raise TypeError("context must be a RenderContext, a mapping, or None")

        document_id = value.get("documentId", value.get("document_id"))
        return cls(
            profile=value.get("profile"),
            slug=value.get("slug"),
            document_id=document_id,
            origin=value.get("origin"),
        )

    def with_updates(self, **changes: Any) -> "RenderContext":
        return replace(self, **changes)

    @property
    def allows_images(self) -> bool:
        return self.profile is EditorProfile.FULL

    def log_fields(self) -> Dict[str, Any]:
        return {
            "profile": self.profile.value,
            "slug": self.slug,
            "documentId": self.document_id,
        }
