from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from proseguard.core.normalization.document import sanitize_editor_json
from proseguard.core.normalization.figure_markup import extract_image_figure_attrs
from proseguard.core.rendering.html_renderer import render_fallback_html
from proseguard.core.rendering.prose import wrap_with_prose
from proseguard.core.rendering.selector import select_rendered_html
from proseguard.core.runtime.config import RenderConfig
from proseguard.core.runtime.context import RenderContext
from proseguard.core.validation.engine import validate_editor_html
from proseguard.observability.render_logs import warn_with_context
from proseguard.utils.json_safe import to_jsonable


def _print_json(obj: object) -> None:
    print(json.dumps(to_jsonable(obj), indent=2, sort_keys=True))


def _read_input(path: str, max_bytes: int) -> Optional[str]:
    """Read a document from a file or stdin ("-").

    Security notes:
    - Never reads more than max_bytes + 1 bytes from a file.
    - Prints the error and returns None on any input problem.

    """

    if path == "-":
        text = sys.stdin.read()
        if len(text.encode("utf-8")) > max_bytes:
            print(f"error: input exceeds {max_bytes} bytes", file=sys.stderr)
            return None
        return text

    path = os.path.abspath(path)
    if not os.path.exists(path):
        print(f"error: file not found: {path}", file=sys.stderr)
        return None
    if not os.path.isfile(path):
        print(f"error: not a regular file: {path}", file=sys.stderr)
        return None

    with open(path, "rb") as f:
        raw = f.read(max_bytes + 1)
    if len(raw) > max_bytes:
        print(f"error: input exceeds {max_bytes} bytes", file=sys.stderr)
        return None
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        print(f"error: input is not valid UTF-8: {path}", file=sys.stderr)
        return None


def _context(args: argparse.Namespace, cfg: RenderConfig) -> RenderContext:
    ctx = cfg.context(slug=args.slug, document_id=args.document_id)
    if args.profile is not None:
        ctx = ctx.with_updates(profile=args.profile)
    if args.origin is not None:
        ctx = ctx.with_updates(origin=args.origin)
    return ctx


def cmd_sanitize(args: argparse.Namespace, cfg: RenderConfig) -> int:
    """Print the sanitized editor document (null when unusable)."""

    text = _read_input(args.path, cfg.max_input_bytes)
    if text is None:
        return 2
    _print_json(sanitize_editor_json(text, _context(args, cfg)))
    return 0


def cmd_render(args: argparse.Namespace, cfg: RenderConfig) -> int:
    text = _read_input(args.path, cfg.max_input_bytes)
    if text is None:
        return 2
    html = render_fallback_html(text, _context(args, cfg))
    print(wrap_with_prose(html, cfg.prose_class) if args.wrap else html)
    return 0


def cmd_validate(args: argparse.Namespace, cfg: RenderConfig) -> int:
    """Validate stored HTML. Exit status 1 means the HTML is unsafe."""

    text = _read_input(args.path, cfg.max_input_bytes)
    if text is None:
        return 2
    ctx = _context(args, cfg)
    decision = validate_editor_html(text, ctx)
    if not decision.allowed:
        warn_with_context(ctx, decision.reason or "html_rejected", rule=decision.rule_id)
    _print_json(decision)
    return 0 if decision.allowed else 1


def cmd_select(args: argparse.Namespace, cfg: RenderConfig) -> int:
    text = _read_input(args.path, cfg.max_input_bytes)
    if text is None:
        return 2
    stored = None
    if args.stored_html:
        stored = _read_input(args.stored_html, cfg.max_input_bytes)
        if stored is None:
            return 2
    _print_json(select_rendered_html(text, stored, _context(args, cfg)))
    return 0


def cmd_figure(args: argparse.Namespace, cfg: RenderConfig) -> int:
    """Print normalized image figure attributes read from markup."""

    text = _read_input(args.path, cfg.max_input_bytes)
    if text is None:
        return 2
    attrs = extract_image_figure_attrs(text, origin=_context(args, cfg).origin)
    _print_json(attrs)
    return 0 if attrs is not None else 1


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("path", help="Input file, or - for stdin")
    p.add_argument("--profile", default=None, choices=["basic", "full"], help="Editor profile (default from env)")
    p.add_argument("--origin", default=None, help="Public site origin for same-origin image checks")
    p.add_argument("--slug", default=None, help="Page slug (for log correlation)")
    p.add_argument("--document-id", default=None, help="Document id (for log correlation)")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    p = argparse.ArgumentParser(prog="proseguard", description="Rich-text sanitizer, renderer and validator")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("sanitize", help="Sanitize editor JSON against the schema")
    _add_common(sp)
    sp.set_defaults(func=cmd_sanitize)

    rp = sub.add_parser("render", help="Sanitize and render editor JSON to HTML")
    _add_common(rp)
    rp.add_argument("--wrap", action="store_true", help="Wrap output in the prose container")
    rp.set_defaults(func=cmd_render)

    vp = sub.add_parser("validate", help="Validate stored HTML (exit 1 when unsafe)")
    _add_common(vp)
    vp.set_defaults(func=cmd_validate)

    sel = sub.add_parser("select", help="Choose stored HTML or a fresh render")
    _add_common(sel)
    sel.add_argument("--stored-html", default=None, help="File holding the stored HTML")
    sel.set_defaults(func=cmd_select)

    fp = sub.add_parser("figure", help="Extract image figure attributes from markup")
    _add_common(fp)
    fp.set_defaults(func=cmd_figure)

    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = RenderConfig.from_env()
    logging.basicConfig(level=cfg.resolved_log_level(), stream=sys.stderr, format="%(levelname)s %(name)s %(message)s")
    logging.getLogger("proseguard").setLevel(cfg.resolved_log_level())
    return int(args.func(args, cfg))


if __name__ == "__main__":
    raise SystemExit(main())
