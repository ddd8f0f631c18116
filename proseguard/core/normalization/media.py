from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import urlsplit

MEDIA_SRC_PATTERN = re.compile(r"^/media/[A-Za-z0-9/_\-.]+\Z")
MEDIA_SRC_ABSOLUTE_PATTERN = re.compile(r"^https?://([^/]+)/media/[A-Za-z0-9/_\-.]+\Z")


def normalize_origin_host(origin: Optional[str]) -> Optional[str]:
    """Return the lowercase host[:port] of an origin URL, or None.

    Security notes:
    - Userinfo is never part of the result, so "https://a@b" cannot alias "b".
    """

    if not origin or not isinstance(origin, str):
        return None
    try:
        parts = urlsplit(origin.strip())
        host = parts.hostname
        port = parts.port
    except ValueError:
        return None
    if parts.scheme not in {"http", "https"} or not host:
        return None
    return f"{host}:{port}" if port is not None else host


def is_allowed_image_src(src: Any, origin: Optional[str] = None) -> bool:
    """True for /media/<key> paths and absolute media URLs on the caller's origin.

    Only syntax and host are checked; whether the media exists is the media
    service's concern.
    """

    if not isinstance(src, str):
        return False
    if MEDIA_SRC_PATTERN.match(src):
        return True
    match = MEDIA_SRC_ABSOLUTE_PATTERN.match(src)
    if not match:
        return False
    allowed_host = normalize_origin_host(origin)
    if allowed_host is None:
        return False
    return match.group(1).lower() == allowed_host
