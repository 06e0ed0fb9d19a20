"""
Command-line interface for the link crawler.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from linkcrawler.aggregator import CrawlSummary, ResultAggregator
from linkcrawler.config import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_URLS,
    DEFAULT_RATE_LIMIT,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_S,
    CrawlRequest,
    CrawlSettings,
)
from linkcrawler.errors import ConfigError
from linkcrawler.events import ErrorEvent, ProgressEvent, encode_jsonl, encode_sse
from linkcrawler.gate import allow_all, is_allowed_url
from linkcrawler.models import CrawlState
from linkcrawler.scheduler import Crawler

ENCODERS = {"jsonl": encode_jsonl, "sse": encode_sse}


def setup_logging(verbose: bool) -> None:
    """Send library logs to stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # requests/urllib3 are noisy at debug level
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def parse_headers(values: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated 'Name: value' options."""
    headers: Dict[str, str] = {}
    for value in values or []:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise ConfigError(f"Invalid header (expected 'Name: value'): {value}")
        headers[name.strip()] = content.strip()
    return headers


def print_progress(event: ProgressEvent) -> None:
    """Print real-time progress to stderr."""
    # Clear line and print progress
    sys.stderr.write(f"\r\033[K[{event.done}/~{event.total}] {event.current_url}")
    sys.stderr.flush()


def print_summary(summary: CrawlSummary, state: CrawlState) -> None:
    """Print crawl summary to stderr."""
    sys.stderr.write("\n" + "=" * 50 + "\n")
    sys.stderr.write(f"CRAWL SUMMARY ({state.value})\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Total links:       {summary.total_links}\n")
    sys.stderr.write(f"Internal:          {summary.internal}\n")
    sys.stderr.write(f"External:          {summary.external}\n")
    sys.stderr.write(f"Failed pages:      {summary.failed_pages}\n")
    sys.stderr.write(f"Redirected:        {summary.redirected}\n\n")

    if summary.error_counts:
        sys.stderr.write("Errors by type:\n")
        for error_type, count in sorted(summary.error_counts.items()):
            label = "Connection errors" if error_type == "connection_error" else f"HTTP {error_type}"
            sys.stderr.write(f"  {label}: {count}\n")
    else:
        sys.stderr.write("No errors encountered.\n")

    sys.stderr.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkcrawler",
        description="Discover links from seed URLs, resolve their status and stream the results.",
    )
    parser.add_argument("urls", nargs="+", help="Seed URL(s) (e.g. https://example.com)")
    parser.add_argument("--recursive", action="store_true", help="Follow internal links breadth-first")
    parser.add_argument("--max-urls", type=int, default=DEFAULT_MAX_URLS,
                        help=f"Maximum results to emit (default: {DEFAULT_MAX_URLS})")
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH,
                        help=f"Maximum recursion depth (default: {DEFAULT_MAX_DEPTH})")
    parser.add_argument("--rate-limit", type=float, default=DEFAULT_RATE_LIMIT,
                        help=f"Requests per second (default: {DEFAULT_RATE_LIMIT})")
    parser.add_argument("--any-domain", action="store_true",
                        help="Follow internal links on hosts other than the seeds'")
    parser.add_argument("--url-filter", help="Only process URLs matching this regex (max 200 chars)")
    parser.add_argument("--path-include", help="Comma-separated path prefixes to include")
    parser.add_argument("--path-exclude", help="Comma-separated path prefixes to exclude")
    parser.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT_S,
                        help=f"Request timeout in seconds, 1-120 (default: {DEFAULT_TIMEOUT_S})")
    parser.add_argument("--retries", type=int, default=DEFAULT_RETRIES,
                        help=f"Retries on server/transport errors, 0-5 (default: {DEFAULT_RETRIES})")
    parser.add_argument("--header", action="append", metavar="'NAME: VALUE'", help="Extra request header")
    parser.add_argument("--proxy", help="Proxy URL, e.g. http://host:port")
    parser.add_argument("--allow-private", action="store_true",
                        help="Do not block loopback/private seed addresses")
    parser.add_argument("--format", choices=sorted(ENCODERS), default="jsonl", help="Event stream framing")
    parser.add_argument("--out", help="Write collected results as JSON to this path, or '-' for stdout")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print the --out JSON")
    parser.add_argument("--verbose", action="store_true", help="Show progress, debug logs and summary")
    return parser


def request_from_args(args: argparse.Namespace) -> CrawlRequest:
    return CrawlRequest(
        urls=args.urls,
        recursive=args.recursive,
        max_urls=args.max_urls,
        max_depth=args.max_depth,
        rate_limit=args.rate_limit,
        same_domain_only=not args.any_domain,
        url_filter=args.url_filter,
        path_include=args.path_include,
        path_exclude=args.path_exclude,
        settings=CrawlSettings(
            timeout=args.timeout,
            retries=args.retries,
            headers=parse_headers(args.header),
            proxy=args.proxy,
        ),
    )


def write_results(aggregator: ResultAggregator, out: str, pretty: bool) -> None:
    json_text = json.dumps(aggregator.to_dicts(), ensure_ascii=False, indent=2 if pretty else None)
    if out == "-":
        print(json_text)
        return
    output_path = Path(out)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json_text, encoding="utf-8")
    sys.stderr.write(f"Results written to: {output_path}\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        request = request_from_args(args)
    except ConfigError as e:
        sys.stderr.write(f"error: {e}\n")
        return 2

    crawler = Crawler(request, gate=allow_all if args.allow_private else is_allowed_url)
    aggregator = ResultAggregator()
    encode = ENCODERS[args.format]
    failed = False

    events = crawler.events()
    try:
        for event in aggregator.consume(events):
            if args.verbose and isinstance(event, ProgressEvent):
                print_progress(event)
            if isinstance(event, ErrorEvent):
                failed = True
            sys.stdout.write(encode(event))
            sys.stdout.flush()
    except KeyboardInterrupt:
        crawler.cancel()
        events.close()
        sys.stderr.write("\nCrawl cancelled.\n")

    if args.verbose:
        print_summary(aggregator.summary(), crawler.state)
    if args.out:
        write_results(aggregator, args.out, args.pretty)

    if crawler.state is CrawlState.CANCELLED:
        return 130
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
