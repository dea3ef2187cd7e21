#!/usr/bin/env python3
"""voiceagent - resolve one utterance from the command line

Prints the resolved action as JSON, the same shape API callers receive.
"""

import argparse
import json
import sys
from pathlib import Path

# Adding src to path for development
sys.path.insert(0, str(Path(__file__).parent / "src"))

from voiceagent import VoiceAgentApp  # noqa: E402
from voiceagent.core import ConfigManager, FixedClock, LoggingManager, VoiceAgentError  # noqa: E402


def main():
    """Main entry point for the voiceagent CLI."""
    parser = argparse.ArgumentParser(description="Resolve a transcribed utterance into a structured action")
    parser.add_argument("text", help="Transcribed utterance")
    parser.add_argument("--lang", default=None, help="Language code (lv, et)")
    parser.add_argument("--now", help="Reference instant as ISO 8601, e.g. 2025-11-05T16:37:00+02:00")
    parser.add_argument("--no-teacher", action="store_true", help="Never escalate to the teacher")
    parser.add_argument("--config", help="Configuration directory")
    parser.add_argument("--details", action="store_true", help="Include routing decision and confidence")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    args = parser.parse_args()

    if args.verbose:
        LoggingManager().set_log_level("DEBUG")

    try:
        config_manager = ConfigManager(Path(args.config) if args.config else None)
        config = config_manager.config
        if args.no_teacher:
            config.teacher.enabled = False

        clock = None
        if args.now:
            clock = FixedClock(args.now, config.languages.timezones, config.languages.fallback_timezone)

        app = VoiceAgentApp(config_manager=config_manager, clock=clock)
    except (VoiceAgentError, ValueError) as e:
        print(f"Failed to start: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        routing = app.resolve_detailed(args.text, args.lang)
        payload = routing.result.to_dict()
        if args.details:
            payload = {
                "result": payload,
                "decision": routing.decision.value,
                "confidence": routing.outcome.score,
                "issues": [issue.value for issue in routing.outcome.issues],
                "discrepancies": routing.discrepancy.to_dict() if routing.discrepancy else None,
            }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    finally:
        app.shutdown()


if __name__ == "__main__":
    main()
