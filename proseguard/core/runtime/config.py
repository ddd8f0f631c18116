from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from proseguard.core.schema.classnames import PROSE_CLASSNAME
from proseguard.core.schema.profiles import DEFAULT_EDITOR_PROFILE, EditorProfile, resolve_editor_profile

from .context import RenderContext

DEFAULT_MAX_INPUT_BYTES = 256 * 1024


@dataclass(frozen=True, slots=True)
class RenderConfig:
    """Process-level settings for rendering and the write path.

    Security notes:
    - origin is the public site origin used for same-origin image checks.
      Leave it unset to accept relative /media/ paths only.
    - max_input_bytes bounds every document handed to the sanitizer.

    """

    origin: Optional[str] = None
    profile: EditorProfile = DEFAULT_EDITOR_PROFILE
    max_input_bytes: int = DEFAULT_MAX_INPUT_BYTES
    prose_class: str = PROSE_CLASSNAME
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        object.__setattr__(self, "profile", resolve_editor_profile(self.profile))
        if not isinstance(self.max_input_bytes, int) or isinstance(self.max_input_bytes, bool):
            raise TypeError("max_input_bytes must be an int")
        if self.max_input_bytes <= 0:
            raise ValueError("max_input_bytes must be positive")
        if not isinstance(self.prose_class, str) or not self.prose_class.strip():
            raise ValueError("prose_class must be a non-empty string")

    @classmethod
    def from_env(cls) -> "RenderConfig":
        max_bytes = _env_int("PROSEGUARD_MAX_INPUT_BYTES", DEFAULT_MAX_INPUT_BYTES)
        return cls(
            origin=(os.environ.get("PROSEGUARD_ORIGIN", "").strip() or None),
            profile=resolve_editor_profile(os.environ.get("PROSEGUARD_PROFILE")),
            max_input_bytes=max_bytes if max_bytes > 0 else DEFAULT_MAX_INPUT_BYTES,
            prose_class=(os.environ.get("PROSEGUARD_PROSE_CLASS", "").strip() or PROSE_CLASSNAME),
            log_level=(os.environ.get("PROSEGUARD_LOG_LEVEL", "").strip() or "INFO").upper(),
        )

    def context(self, *, slug: Optional[str] = None, document_id: Optional[str] = None) -> RenderContext:
        return RenderContext(profile=self.profile, slug=slug, document_id=document_id, origin=self.origin)

    def resolved_log_level(self) -> int:
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.INFO


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable.

    Security notes:
    - Env vars are treated as trusted server configuration.

    """

    raw = os.environ.get(name, "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError:
        return int(default)
