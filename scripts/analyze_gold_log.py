#!/usr/bin/env python3
"""
Gold Log Analyzer

Summarises how often the fast path was accepted, how often the teacher was
consulted and how much the two agreed.
"""

import json
import sys
from dataclasses import asdict
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from voiceagent.audit import GoldLogAnalyzer, format_report  # noqa: E402
from voiceagent.core import ConfigManager, LogSinkFailure  # noqa: E402


def main():
    """Main entry point for the gold log analyzer."""
    import argparse

    parser = argparse.ArgumentParser(description="Gold Log Analyzer")
    parser.add_argument("--db", help="Gold log database (defaults to the configured path)")
    parser.add_argument("--recent", type=int, default=10, help="Number of recent discrepancies to list")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")

    args = parser.parse_args()

    db_path = args.db or ConfigManager().config.gold_log.db_path
    analyzer = GoldLogAnalyzer(db_path)

    try:
        report = analyzer.analyze()
        recent = analyzer.recent_discrepancies(args.recent) if args.recent else []
    except LogSinkFailure as e:
        print(f"Cannot analyze gold log: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        payload = asdict(report)
        payload["recent_discrepancies"] = recent
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(format_report(report, recent))


if __name__ == "__main__":
    main()
