from __future__ import annotations

import argparse
import logging
from typing import List

from webreq.cli.request_cmds import register_request_commands


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="webreq", description="Asynchronous HTTP client")
    p.add_argument("-v", "--verbose", action="store_true", help="Log requests to stderr")
    sub = p.add_subparsers(dest="cmd", required=True)
    register_request_commands(sub)
    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
