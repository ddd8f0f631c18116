from __future__ import annotations

from enum import Enum
from typing import Any


class EditorProfile(str, Enum):
    """
    Capability tier of an editor instance.

    Using str Enum ensures stable serialization and safe comparisons.
    """

    BASIC = "basic"
    FULL = "full"


DEFAULT_EDITOR_PROFILE: EditorProfile = EditorProfile.BASIC


def resolve_editor_profile(value: Any) -> EditorProfile:
    """Resolve an untrusted profile value.

    Anything other than a (trimmed, case-insensitive) "full" resolves to the
    default basic profile, so a tampered value can only lose capabilities.
    """

    if isinstance(value, EditorProfile):
        return value
    if isinstance(value, str) and value.strip().lower() == EditorProfile.FULL.value:
        return EditorProfile.FULL
    return DEFAULT_EDITOR_PROFILE


def is_full_editor_profile(profile: Any) -> bool:
    return resolve_editor_profile(profile) is EditorProfile.FULL
