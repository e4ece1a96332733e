"""Command-line inspection of retrieval payloads.

Usage examples:
  python -m lens.cli view response.json --strategy fusion
  python -m lens.cli view response.json --strategy multi-query --max-depth 6
  python -m lens.cli strategies
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from lens.core.config import get_settings
from lens.core.exceptions import ResponseParseError
from lens.core.logging_config import setup_logging
from lens.retrieval.response_parser import parse_json_lenient
from lens.retrieval.router import select_view
from lens.retrieval.strategies import RETRIEVAL_STRATEGIES


def cmd_view(args: argparse.Namespace) -> int:
    path = Path(args.payload)
    if not path.is_file():
        print(f"error: no such file: {path}", file=sys.stderr)
        return 2

    try:
        payload = parse_json_lenient(path.read_text(encoding="utf-8"))
    except ResponseParseError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    max_depth = args.max_depth if args.max_depth is not None else get_settings().discovery.max_depth
    view = select_view(args.strategy, payload, max_depth)
    print(view.model_dump_json(indent=2))
    return 0


def cmd_strategies(args: argparse.Namespace) -> int:
    if args.json:
        data = [s.model_dump(mode="json") for s in RETRIEVAL_STRATEGIES]
        print(json.dumps(data, indent=2))
        return 0

    for strategy in RETRIEVAL_STRATEGIES:
        print(f"{strategy.id.value:<18} [{strategy.category.value}] {strategy.name}")
        print(f"  {strategy.description}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect notebook retrieval payloads.")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    sub = parser.add_subparsers(dest="command")

    view_parser = sub.add_parser("view", help="Print the view selected for a payload")
    view_parser.add_argument("payload", help="Path to a raw retrieval response (JSON)")
    view_parser.add_argument("--strategy", default=None, help="Strategy id, e.g. fusion or multi-query")
    view_parser.add_argument("--max-depth", type=int, default=None)
    view_parser.set_defaults(func=cmd_view)

    list_parser = sub.add_parser("strategies", help="List the strategy catalogue")
    list_parser.add_argument("--json", action="store_true")
    list_parser.set_defaults(func=cmd_strategies)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    setup_logging(level=args.log_level or get_settings().log_level, log_to_file=False)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
