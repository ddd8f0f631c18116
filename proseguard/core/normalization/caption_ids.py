"""Caption id generation.

Caption ids link an <img> to its <figcaption> via aria-describedby. They must
be unique within a page; they are not secrets.
"""

from __future__ import annotations

import random
import re
import secrets
from typing import Any, Callable

CAPTION_ID_PREFIX = "imgcap-"
CAPTION_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789_-"
CAPTION_ID_LENGTH = 10
CAPTION_ID_PATTERN = re.compile(r"^imgcap-[a-z0-9_-]{8,22}\Z")

CaptionIdFactory = Callable[[], str]


def _random_suffix(length: int = CAPTION_ID_LENGTH) -> str:
    try:
        return "".join(secrets.choice(CAPTION_ID_ALPHABET) for _ in range(length))
    except NotImplementedError:
        # No OS randomness source. Non-cryptographic fallback: ids only need
        # to be unique, they carry no secrecy.
        rng = random.Random()
        return "".join(rng.choice(CAPTION_ID_ALPHABET) for _ in range(length))


def create_caption_id() -> str:
    return f"{CAPTION_ID_PREFIX}{_random_suffix()}"


def is_valid_caption_id(value: Any) -> bool:
    return isinstance(value, str) and CAPTION_ID_PATTERN.match(value) is not None


def ensure_caption_id(value: Any, factory: CaptionIdFactory = create_caption_id) -> str:
    """Return value if it is a well-formed caption id, otherwise a fresh one."""
    return value if is_valid_caption_id(value) else factory()
