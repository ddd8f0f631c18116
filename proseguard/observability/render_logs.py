from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from proseguard.core.runtime.context import RenderContext

log = logging.getLogger("proseguard.render")

RENDER_WARNING_EVENT = "editor.render.warning"

# Never let document bodies reach the log sink.
_DISALLOWED_KEYS = frozenset({"content", "content_json", "contentHtml", "html", "file", "bytes", "body"})
_MAX_VALUE_LEN = 200

_RESERVED_RECORD_KEYS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


def sanitize_details(details: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop content-bearing keys and bound string values.

    Security notes:
    - Warning extras are attacker-influenced (e.g. an image src); long values
      are truncated to keep log lines bounded.
    """

    if not details or not isinstance(details, Mapping):
        return {}

    clean: Dict[str, Any] = {}
    for key, value in details.items():
        k = str(key)
        lowered = k.lower()
        if k in _DISALLOWED_KEYS or "content_json" in lowered or "file" in lowered or "bytes" in lowered:
            continue
        if isinstance(value, str) and len(value) > _MAX_VALUE_LEN:
            value = value[:_MAX_VALUE_LEN] + "..."
        clean[k] = value
    return clean


def render_warning_payload(context: RenderContext, reason: str, details: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"event": RENDER_WARNING_EVENT, "reason": reason}
    payload.update(context.log_fields())
    for key, value in sanitize_details(details).items():
        # Base fields win over extras.
        payload.setdefault(key, value)
    return payload


def _record_extra(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {(f"detail_{k}" if k in _RESERVED_RECORD_KEYS else k): v for k, v in payload.items()}


def warn_with_context(context: RenderContext, reason: str, **details: Any) -> None:
    """Emit one structured render warning.

    The logger is a passive sink: handlers may drop or fail on the record, the
    caller's control flow never depends on it.
    """

    payload = render_warning_payload(context, reason, details)
    log.warning(RENDER_WARNING_EVENT, extra=_record_extra(payload))
