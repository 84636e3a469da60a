#!/usr/bin/env python3
"""Run one or more searches through the fallback pipeline and print JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from serpscout.config import load_config
from serpscout.search import SearchFilters, SearchOptions, SearchPipeline, search_batch
from serpscout.utils.logs import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("queries", nargs="+", help="Search queries to run")
    parser.add_argument("--config", type=Path, default=None, help="Config file path")
    parser.add_argument("--max-results", type=int, default=None, help="Results per query")
    parser.add_argument("--region", default=None, help="Engine region code, e.g. us-en")
    parser.add_argument("--safe-search", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument(
        "--time-range",
        choices=["day", "week", "month", "year"],
        default=None,
    )
    parser.add_argument(
        "--include",
        action="append",
        default=None,
        help="Keep only URLs containing this substring (repeatable)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        help="Drop URLs containing this substring (repeatable)",
    )
    parser.add_argument("--workers", type=int, default=None, help="Concurrent searches")
    parser.add_argument("--timeout", type=float, default=None, help="Per-query timeout in seconds")
    parser.add_argument("--no-browser", action="store_true", help="Static fetch only")
    parser.add_argument("--follow-ups", action="store_true", help="Include follow-up queries")
    parser.add_argument("--log-level", default=None)
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    if args.no_browser:
        config.browser.enabled = False
    setup_logging(args.log_level or config.logging.level)

    overrides = {
        "max_results": args.max_results,
        "region": args.region,
        "safe_search": args.safe_search,
        "time_range": args.time_range,
    }
    if args.include or args.exclude:
        overrides["filters"] = SearchFilters(
            include=tuple(args.include or config.search.filters.include),
            exclude=tuple(args.exclude or config.search.filters.exclude),
        )

    try:
        options = SearchOptions.from_config(args.queries[0], config.search, **overrides)
    except ValueError as e:
        print(f"Invalid options: {e}", file=sys.stderr)
        return 2

    async with SearchPipeline(config) as pipeline:
        outcomes = await search_batch(
            pipeline,
            args.queries,
            options,
            max_workers=args.workers or config.search.max_concurrent_searches,
            timeout_s=args.timeout,
        )

    payload = []
    for outcome in outcomes:
        entry: dict = {
            "query": outcome.query,
            "results": [r.to_dict() for r in outcome.results],
        }
        if outcome.error is not None:
            entry["error"] = str(outcome.error)
        if args.follow_ups:
            entry["followUps"] = pipeline.follow_up_queries(outcome.query)
        payload.append(entry)

    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0 if any(o.ok for o in outcomes) else 1


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    raise SystemExit(main())
