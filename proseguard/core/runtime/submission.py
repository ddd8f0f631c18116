"""Write path for editor form submissions.

An editing surface posts one or more editors in a flat form:

    content_json[<id>]   serialized editor document (required)
    content_html[<id>]   serialized HTML from the editor (optional)
    profile[<id>]        "basic" or "full" (defaults to basic)
    document_id[<id>]    storage key (defaults to <id>)
    etag[<id>]           optimistic concurrency token (optional)

Every entry is size-checked, schema-checked and sanitized before storage.
Supplied HTML is stored only when the validator accepts it; otherwise the
HTML is regenerated from the sanitized tree.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from proseguard.core.errors import SubmissionRejected
from proseguard.core.normalization.document import sanitize_editor_json
from proseguard.core.rendering.html_renderer import render_fallback_html
from proseguard.core.schema.profiles import EditorProfile, resolve_editor_profile
from proseguard.core.schema.signature import SCHEMA_SIGNATURE
from proseguard.core.validation.engine import is_safe_editor_html

from .config import DEFAULT_MAX_INPUT_BYTES
from .context import RenderContext

log = logging.getLogger("proseguard.save")

CONTENT_JSON_KEY = "content_json"
CONTENT_HTML_KEY = "content_html"
PROFILE_KEY = "profile"
DOCUMENT_ID_KEY = "document_id"
ETAG_KEY = "etag"


@dataclass(frozen=True)
class EditorSubmission:
    editor_id: str
    content_json: str
    content_html: str = ""
    profile: EditorProfile = EditorProfile.BASIC
    document_id: Optional[str] = None
    etag: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.editor_id, str):
            raise TypeError("editor_id must be a string")
        if not isinstance(self.content_json, str):
            raise TypeError("content_json must be a string")
        if not isinstance(self.content_html, str):
            raise TypeError("content_html must be a string")
        object.__setattr__(self, "profile", resolve_editor_profile(self.profile))
        if not self.document_id:
            object.__setattr__(self, "document_id", self.editor_id)


@dataclass(frozen=True)
class PreparedDocument:
    """Sanitized document ready for persistence."""

    document_id: str
    profile: EditorProfile
    content_json: str
    content_html: str
    slug: Optional[str] = None
    etag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "documentId": self.document_id,
            "profile": self.profile.value,
            "slug": self.slug,
            "contentJson": self.content_json,
            "contentHtml": self.content_html,
            "etag": self.etag,
        }


def _byte_len(value: str) -> int:
    return len(value.encode("utf-8"))


def _reject(reason: str, status: int, *, slug: Optional[str] = None, document_id: Optional[str] = None) -> SubmissionRejected:
    log.warning(
        "editor.save.fail",
        extra={"event": "editor.save.fail", "reason": reason, "status": status, "slug": slug, "documentId": document_id},
    )
    return SubmissionRejected(reason, status, document_id=document_id)


def _keyed(form: Mapping[str, Any], field: str, editor_id: str) -> Optional[str]:
    value = form.get(f"{field}[{editor_id}]")
    return value if isinstance(value, str) else None


def collect_editor_submissions(
    form: Mapping[str, Any],
    *,
    max_bytes: int = DEFAULT_MAX_INPUT_BYTES,
    slug: Optional[str] = None,
) -> List[EditorSubmission]:
    """Group flat form fields into per-editor submissions.

    Raises SubmissionRejected when no content_json[<id>] entry is present or
    one of them exceeds max_bytes.
    """

    if not isinstance(form, Mapping):
        raise _reject("invalid_body", 400, slug=slug)

    prefix = f"{CONTENT_JSON_KEY}["
    submissions: List[EditorSubmission] = []
    for key, value in form.items():
        if not (isinstance(key, str) and key.startswith(prefix) and key.endswith("]")):
            continue
        if not isinstance(value, str):
            continue
        editor_id = key[len(prefix):-1]
        if _byte_len(value) > max_bytes:
            raise _reject("content_too_large", 413, slug=slug, document_id=editor_id)

        document_id = (_keyed(form, DOCUMENT_ID_KEY, editor_id) or "").strip() or editor_id
        etag = _keyed(form, ETAG_KEY, editor_id)
        submissions.append(
            EditorSubmission(
                editor_id=editor_id,
                content_json=value,
                content_html=_keyed(form, CONTENT_HTML_KEY, editor_id) or "",
                profile=resolve_editor_profile(_keyed(form, PROFILE_KEY, editor_id)),
                document_id=document_id,
                etag=etag or None,
            )
        )

    if not submissions:
        raise _reject("missing_content", 400, slug=slug)
    return submissions


def _is_valid_content(doc: Any) -> bool:
    if not isinstance(doc, Mapping) or doc.get("type") != "doc":
        return False
    if not isinstance(doc.get("content"), list):
        return False

    known = SCHEMA_SIGNATURE.full_nodes
    stack = list(doc["content"])
    while stack:
        node = stack.pop()
        if not isinstance(node, Mapping):
            return False
        node_type = node.get("type")
        if not isinstance(node_type, str) or node_type not in known or node_type == "doc":
            return False
        children = node.get("content")
        if isinstance(children, list):
            stack.extend(children)
    return True


def prepare_for_storage(
    submission: EditorSubmission,
    *,
    slug: Optional[str] = None,
    origin: Optional[str] = None,
    max_bytes: int = DEFAULT_MAX_INPUT_BYTES,
) -> PreparedDocument:
    """Sanitize one submission and settle its HTML.

    Security notes:
    - The stored tree is always the sanitized tree, never the raw payload.
    - Supplied HTML that fails validation rejects the save; it is not repaired.
    """

    if not isinstance(submission, EditorSubmission):
        raise TypeError("submission must be an EditorSubmission")

    document_id = submission.document_id
    if _byte_len(submission.content_json) > max_bytes:
        raise _reject("content_too_large", 413, slug=slug, document_id=document_id)

    context = RenderContext(profile=submission.profile, slug=slug, document_id=document_id, origin=origin)

    try:
        parsed = json.loads(submission.content_json)
    except (ValueError, RecursionError):
        parsed = None
    if not _is_valid_content(parsed):
        raise _reject("invalid_content_schema", 422, slug=slug, document_id=document_id)

    sanitized = sanitize_editor_json(parsed, context)
    if sanitized is None:
        raise _reject("invalid_content_schema", 422, slug=slug, document_id=document_id)

    content_html = submission.content_html
    if content_html:
        if _byte_len(content_html) > max_bytes:
            raise _reject("html_too_large", 413, slug=slug, document_id=document_id)
        if not is_safe_editor_html(content_html, context):
            raise _reject("html_invalid", 422, slug=slug, document_id=document_id)
    else:
        content_html = render_fallback_html(sanitized, context)

    if _byte_len(content_html) > max_bytes:
        raise _reject("html_too_large", 413, slug=slug, document_id=document_id)

    log.info(
        "editor.save.ok",
        extra={"event": "editor.save.ok", "slug": slug, "documentId": document_id, "profile": context.profile.value},
    )
    return PreparedDocument(
        document_id=document_id,
        profile=context.profile,
        content_json=json.dumps(sanitized, ensure_ascii=False, separators=(",", ":")),
        content_html=content_html,
        slug=context.slug,
        etag=submission.etag,
    )
