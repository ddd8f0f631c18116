from __future__ import annotations

from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Mapping


def to_jsonable(obj: Any) -> Any:
    """
    Convert render results to JSON-serializable equivalents.

    Security considerations:
    - does NOT execute or import anything dynamically.
    - objects exposing to_dict() serialize through it, so their wire names
      (e.g. fromStored, captionId) are preserved.

    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj.value if isinstance(obj, Enum) else obj

    if isinstance(obj, Enum):
        return to_jsonable(obj.value)

    # dataclasses with an explicit wire shape
    to_dict = getattr(obj, "to_dict", None)
    if is_dataclass(obj) and not isinstance(obj, type):
        if callable(to_dict):
            return to_jsonable(to_dict())
        return to_jsonable(asdict(obj))

    # mappings
    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}

    # iterables (including set/frozenset/tuple/list)
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(x) for x in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(to_jsonable(x) for x in obj)

    # fallback: string representation
    return str(obj)
