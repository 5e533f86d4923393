#!/usr/bin/env python3
"""
CLI script to extract works.

Each input is either a saved work page (HTML file) or a work path on the
site ("series/some-novel/"), which is fetched. Output is one JSON entry per
input, with the WorkRecord or the error that stopped it.

Usage:
    python run_extractor.py --site knoxt saved_page.html
    python run_extractor.py --site kolnovel series/some-novel/ -o out.json
    python run_extractor.py --site knoxt series/a/ series/b/ --hide-locked --strict
"""

import argparse
import json
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from serial_parser.config import Preferences
from serial_parser.exceptions import AccessBlocked, SerialParserError
from serial_parser.fetcher import RequestsTransport
from serial_parser.grammar_store import GrammarStore
from serial_parser.logger import setup_logger
from serial_parser.main import SerialParser


def main():
    parser = argparse.ArgumentParser(description="Extract work metadata and chapter lists")
    parser.add_argument("inputs", nargs="+", help="HTML files or work paths to fetch")
    parser.add_argument("--site", "-s", required=True, help="Grammar id (e.g. knoxt)")
    parser.add_argument("--output", "-o", help="Output JSON file")
    parser.add_argument("--hide-locked", action="store_true", help="Drop locked chapters")
    parser.add_argument("--strict", action="store_true", help="Fail on pages that yield nothing")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    prefs = Preferences.from_env()
    setup_logger(level="DEBUG" if args.verbose else prefs.log_level)

    policy = prefs.policy()
    if args.hide_locked:
        policy = policy.model_copy(update={"hide_locked": True})

    serial_parser = SerialParser(
        args.site,
        transport=RequestsTransport(user_agent=prefs.user_agent, timeout=prefs.timeout),
        policy=policy,
        store=GrammarStore(prefs.grammar_dir),
        strict=args.strict,
    )

    results = []

    for item in args.inputs:
        path = Path(item)
        print(f"Extracting: {item}")

        try:
            if path.is_file():
                record = serial_parser.parse_file(path)
            else:
                record = serial_parser.fetch_work(item)

            results.append({
                "input": item,
                "status": "success",
                "work": record.model_dump(mode="json"),
            })
            print(f"  ✓ {record.name or '(no name)'}: {len(record.chapters)} chapters")

        except AccessBlocked as e:
            results.append({"input": item, "status": "error", **e.to_response()})
            print(f"  ✗ Blocked: {e.message}")
        except SerialParserError as e:
            results.append({"input": item, "status": "error", "error": e.message})
            print(f"  ✗ Error: {e.message}")

    # ensure_ascii=False keeps Arabic/Spanish titles readable
    output = json.dumps(results, indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"\nSaved to: {args.output}")
    else:
        print("\n" + output)


if __name__ == "__main__":
    main()
