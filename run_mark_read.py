"""CLI entry point: mark every unread inbox message as read."""

import argparse
import sys

from dotenv import load_dotenv

from src.config import Settings
from src.logging_config import configure_logging
from src.orchestrator import MarkReadOrchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mark all unread Gmail inbox messages as read")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set logging level (overrides LOG_LEVEL env var)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write logs to this file (overrides LOG_FILE env var)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List unread messages without modifying them",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Maximum in-flight API calls (default: 100)",
    )
    parser.add_argument(
        "--quota",
        type=int,
        default=None,
        help="API calls allowed per quota window (default: 100)",
    )
    parser.add_argument(
        "--window-seconds",
        type=float,
        default=None,
        help="Length of the quota window in seconds (default: 60)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    args = build_parser().parse_args(argv)
    configure_logging(level_override=args.log_level, log_file=args.log_file)

    try:
        settings = Settings.from_env().with_overrides(
            max_concurrency=args.max_concurrency,
            quota=args.quota,
            window_seconds=args.window_seconds,
        )
        settings.validate()
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    orchestrator = MarkReadOrchestrator(settings=settings, dry_run=args.dry_run)
    result = orchestrator.run()

    print("\n--- Mark Read Summary ---")
    for step in result.steps:
        status = "SKIPPED" if step.skipped else ("OK" if step.success else "FAILED")
        print(f"  {step.name}: {status} ({step.duration_seconds}s)")
        for key, value in step.details.items():
            print(f"    {key}: {value}")
        if step.error:
            print(f"    error: {step.error}")

    overall = "SUCCESS" if result.success else "FAILURE"
    print(f"\nResult: {overall}")

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
