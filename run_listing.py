#!/usr/bin/env python3
"""
CLI script to browse a site's catalogue or search it.

Usage:
    python run_listing.py --site knoxt
    python run_listing.py --site knoxt --page 2 --latest
    python run_listing.py --site allnovelread --search "dragon" -o results.json
    python run_listing.py --site kolnovel --filter genre[]=action --filter status=completed
"""

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from serial_parser.config import Preferences
from serial_parser.exceptions import SerialParserError
from serial_parser.fetcher import RequestsTransport
from serial_parser.grammar_store import GrammarStore
from serial_parser.logger import setup_logger
from serial_parser.main import SerialParser


def parse_filters(pairs: list[str]) -> dict:
    """"key=value" pairs into a filter dict; repeated keys collect into a list."""
    filters: dict = {}
    for pair in pairs:
        key, _, value = pair.partition("=")
        if key in filters:
            existing = filters[key]
            filters[key] = (existing if isinstance(existing, list) else [existing]) + [value]
        else:
            filters[key] = value
    return filters


def main():
    parser = argparse.ArgumentParser(description="List or search works on a site")
    parser.add_argument("--site", "-s", required=True, help="Grammar id (e.g. knoxt)")
    parser.add_argument("--page", "-p", type=int, default=1, help="Page number")
    parser.add_argument("--latest", action="store_true", help="Order by latest update")
    parser.add_argument("--search", help="Search term instead of the catalogue")
    parser.add_argument("--filter", action="append", default=[], help="key=value query filter")
    parser.add_argument("--output", "-o", help="Output JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    prefs = Preferences.from_env()
    setup_logger(level="DEBUG" if args.verbose else prefs.log_level)

    try:
        serial_parser = SerialParser(
            args.site,
            transport=RequestsTransport(user_agent=prefs.user_agent, timeout=prefs.timeout),
            store=GrammarStore(prefs.grammar_dir),
        )
        if args.search:
            novels = serial_parser.search(args.search, args.page)
        else:
            novels = serial_parser.fetch_listing(args.page, args.latest, parse_filters(args.filter))
    except SerialParserError as e:
        print(f"✗ Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    output = json.dumps([n.model_dump() for n in novels], indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Saved {len(novels)} works to: {args.output}")
    else:
        print(output)


if __name__ == "__main__":
    main()
