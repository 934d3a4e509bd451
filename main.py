"""CLI entrypoint for pain point analysis."""

from __future__ import annotations

import argparse
import asyncio
from datetime import datetime, timezone
import json
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import Settings, get_settings
from intelligence.pipeline import RATE_LIMIT_MESSAGE, analyze_pain_points, validate_settings
from models import AnalysisResult
from utils.exceptions import ConfigurationError, RateLimitError
from utils.logger import configure_package_logging
from utils.progress import ConsoleProgressReporter


EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_RATE_LIMIT = 2
EXIT_USAGE = 3

console = Console()
err_console = Console(stderr=True)


def _settings_with_overrides(
    settings: Settings,
    min_engagement: Optional[int] = None,
    max_posts: Optional[int] = None,
) -> Settings:
    updates = {}
    if min_engagement is not None:
        updates["min_engagement"] = int(min_engagement)
    if max_posts is not None:
        updates["max_posts"] = int(max_posts)
    if not updates:
        return settings
    return settings.model_copy(update={"analysis": settings.analysis.model_copy(update=updates)})


def render_result(result: AnalysisResult, out: Console = console) -> None:
    """以表格打印 top 类别"""
    if result.message:
        out.print(Panel.fit(f"[yellow]{result.message}[/yellow]", title=f"🔍 {result.search_term}"))
    if not result.categories:
        return

    out.print(Panel.fit(
        f"[bold blue]🔍 Pain points for[/bold blue] [yellow]{result.search_term}[/yellow]\n"
        f"{result.total_pain_points} pain points in {len(result.categories)} categories",
        border_style="blue",
    ))

    table = Table(title="📊 Top Categories", show_header=True, show_lines=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right", style="green")
    table.add_column("Avg engagement", justify="right", style="magenta")
    table.add_column("Summary")

    for idx, category in enumerate(result.top_categories, 1):
        table.add_row(
            str(idx),
            category.name,
            str(category.count),
            str(category.average_engagement),
            category.summary or category.description,
        )
    out.print(table)


def _run_analyze(args: argparse.Namespace) -> int:
    if not args.term.strip():
        err_console.print("[bold red]Search term is required[/bold red]")
        return EXIT_USAGE

    try:
        settings = _settings_with_overrides(
            get_settings(),
            min_engagement=args.min_engagement,
            max_posts=args.max_posts,
        )
        reporter = None if (args.quiet or args.json) else ConsoleProgressReporter(err_console)
        result = asyncio.run(analyze_pain_points(
            args.term,
            settings=settings,
            reporter=reporter,
            show_progress=not (args.quiet or args.json),
        ))
    except ConfigurationError as exc:
        err_console.print(f"[bold red]Configuration error:[/bold red] {exc.message}")
        if exc.missing:
            err_console.print("Set the following environment variables: " + ", ".join(exc.missing))
        return EXIT_CONFIG
    except RateLimitError:
        err_console.print(f"[bold red]{RATE_LIMIT_MESSAGE}[/bold red]")
        return EXIT_RATE_LIMIT

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        render_result(result)
    return EXIT_OK


def _run_health(args: argparse.Namespace) -> int:
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        validate_settings(get_settings())
    except ConfigurationError as exc:
        print(json.dumps({
            "status": "error",
            "timestamp": timestamp,
            "message": "Configuration error - check environment variables",
            "error": exc.message,
        }, ensure_ascii=False))
        return EXIT_CONFIG

    print(json.dumps({
        "status": "healthy",
        "timestamp": timestamp,
        "message": "Pain point analyzer is ready",
    }, ensure_ascii=False))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PainPointer - discover complaints about anything on Reddit")
    parser.add_argument("--log-level", default="WARNING", help="logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="analyze pain points for a search term")
    analyze.add_argument("term")
    analyze.add_argument("--json", action="store_true", help="print the result as JSON")
    analyze.add_argument("--quiet", action="store_true", help="hide progress output")
    analyze.add_argument("--min-engagement", type=int, default=None)
    analyze.add_argument("--max-posts", type=int, default=None)

    sub.add_parser("health", help="check that the required credentials are configured")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_package_logging(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))

    if args.command == "analyze":
        return _run_analyze(args)
    if args.command == "health":
        return _run_health(args)
    parser.error(f"unknown command: {args.command}")
    return EXIT_CONFIG


if __name__ == "__main__":
    sys.exit(main())
