from __future__ import annotations

import argparse
import logging
import os
import re
import sys
from contextlib import ExitStack
from typing import List, Optional, Tuple

from webreq.client.http import WebReqClient
from webreq.config import ClientConfig
from webreq.core.errors import HttpStatusError, PreconditionError, WebReqError
from webreq.core.files import NamedFileStream
from webreq.core.verbs import HttpVerb

log = logging.getLogger("webreq.cli")

_TYPED_PATH = re.compile(r"^(.+):([\w.+-]+/[\w.+-]+)$")


def _parse_pairs(raw: Optional[List[str]]) -> List[Tuple[str, str]]:
    """Parse repeated `name=value` arguments, keeping order and duplicates."""

    pairs: List[Tuple[str, str]] = []
    for item in raw or []:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise PreconditionError(f"expected name=value, got {item!r}")
        pairs.append((name, value))
    return pairs


def _parse_file_arg(arg: str) -> Tuple[str, str, Optional[str]]:
    """Parse `field=path[:content/type]`."""

    field, sep, rest = arg.partition("=")
    if not sep or not field or not rest:
        raise PreconditionError(f"expected field=path[:content/type], got {arg!r}")
    m = _TYPED_PATH.match(rest)
    if m:
        return field, m.group(1), m.group(2)
    return field, rest, None


def _client(args: argparse.Namespace, client: Optional[WebReqClient]) -> WebReqClient:
    if client is not None:
        return client
    base = ClientConfig.from_env()
    cfg = ClientConfig(
        timeout_seconds=args.timeout if args.timeout else base.timeout_seconds,
        max_workers=base.max_workers,
        upload_chunk_bytes=base.upload_chunk_bytes,
        max_error_body_bytes=base.max_error_body_bytes,
        user_agent=base.user_agent,
        log_level="INFO" if getattr(args, "verbose", False) else "WARNING",
    )
    return WebReqClient(config=cfg)


def _run(args: argparse.Namespace, start, client: Optional[WebReqClient] = None) -> int:
    """Start one call, wait for it and print the outcome.

    Returns 0 on success, 2 on any failure.
    """

    outcome: dict = {}

    def on_success(headers, body) -> None:
        with body:
            outcome["body"] = body.read()
        outcome["headers"] = list(headers.items())

    def on_failure(error: WebReqError) -> None:
        outcome["error"] = error

    owned = client is None
    c = _client(args, client)
    try:
        start(c, on_success, on_failure).result()
    except PreconditionError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        # raised while reading the response inside the callback
        log.info("cli_callback_failed", extra={"error": type(e).__name__})
        print(f"error: {e}", file=sys.stderr)
        return 2
    finally:
        if owned:
            c.close()

    err = outcome.get("error")
    if err is not None:
        log.info("cli_request_failed", extra={"error": type(err).__name__})
        print(f"error: {err}", file=sys.stderr)
        if isinstance(err, HttpStatusError) and err.body:
            print(err.body.decode("utf-8", errors="replace"), file=sys.stderr)
        return 2

    if args.headers:
        for name, value in outcome.get("headers", []):
            print(f"{name}: {value}")
        print()
    sys.stdout.write(outcome.get("body", b"").decode("utf-8", errors="replace"))
    sys.stdout.flush()
    return 0


def cmd_request(args: argparse.Namespace, client: Optional[WebReqClient] = None) -> int:
    """Send a GET/HEAD/POST/PUT/PATCH/DELETE request."""

    verb = HttpVerb.coerce(args.cmd)
    try:
        params = _parse_pairs(args.param)
    except PreconditionError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    def start(c: WebReqClient, on_success, on_failure):
        method = getattr(c, verb.value.lower())
        return method(args.url, params, on_success=on_success, on_failure=on_failure, stream=True)

    return _run(args, start, client)


def cmd_upload(args: argparse.Namespace, client: Optional[WebReqClient] = None) -> int:
    """Upload local files as multipart/form-data.

    Security notes:
    - Files are opened read-only and closed once the call has finished.
    """

    try:
        params = _parse_pairs(args.param)
        parsed = [_parse_file_arg(a) for a in args.file]
    except PreconditionError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    with ExitStack() as stack:
        files: List[NamedFileStream] = []
        for field, path, content_type in parsed:
            try:
                fh = stack.enter_context(open(path, "rb"))
            except OSError as e:
                print(f"error: cannot open {path}: {e}", file=sys.stderr)
                return 2
            try:
                files.append(NamedFileStream(field, os.path.basename(path), content_type, fh))
            except PreconditionError as e:
                print(f"error: {e}", file=sys.stderr)
                return 2

        verb = HttpVerb.PUT if args.put else HttpVerb.POST

        def start(c: WebReqClient, on_success, on_failure):
            return c.upload(
                args.url,
                params,
                files,
                verb=verb,
                on_success=on_success,
                on_failure=on_failure,
                stream=True,
            )

        return _run(args, start, client)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("url", help="Absolute http(s) URL")
    p.add_argument(
        "-p",
        "--param",
        action="append",
        default=None,
        metavar="NAME=VALUE",
        help="Parameter (repeatable, order kept)",
    )
    p.add_argument("--headers", action="store_true", help="Print response headers first")
    p.add_argument("--timeout", type=float, default=None, help="Timeout in seconds")


def register_request_commands(sub: argparse._SubParsersAction) -> None:
    """Register one command per verb plus `upload`."""

    for verb in HttpVerb:
        name = verb.value.lower()
        p = sub.add_parser(name, help=f"Send an HTTP {verb.value} request")
        _add_common(p)
        p.set_defaults(func=cmd_request)

    up = sub.add_parser("upload", help="Upload files (multipart/form-data)")
    _add_common(up)
    up.add_argument(
        "-f",
        "--file",
        action="append",
        required=True,
        metavar="FIELD=PATH[:TYPE]",
        help="File to upload (repeatable)",
    )
    up.add_argument("--put", action="store_true", help="Use PUT instead of POST")
    up.set_defaults(func=cmd_upload)
