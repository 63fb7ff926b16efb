#!/usr/bin/env python3
"""Local smoke test for run_mark_read.py.

Validates that the OAuth client secret is present, then lists unread
inbox messages in dry-run mode (nothing is modified).

Run from project root:
    python scripts/local_test_mark_read.py
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

sys.path.insert(0, str(PROJECT_ROOT))
from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

from src.config import Settings  # noqa: E402
from src.logging_config import configure_logging  # noqa: E402


def check_prerequisites(settings: Settings) -> list[str]:
    errors = []
    if not settings.credentials_path.exists():
        errors.append(f"Missing client secret: {settings.credentials_path}")
    try:
        settings.validate()
    except ValueError as e:
        errors.append(f"Invalid settings: {e}")
    return errors


def main() -> int:
    configure_logging()
    settings = Settings.from_env()

    print("Checking prerequisites ...\n")
    errors = check_prerequisites(settings)

    if errors:
        for err in errors:
            print(f"  ✗ {err}")
        print(
            "\nSetup instructions:"
            "\n  1. Place OAuth credentials in config/credentials.json"
            "\n     (or point GMAIL_CREDENTIALS_PATH at them)"
            "\n  2. Run this script interactively once to cache a token"
        )
        return 1

    print(f"  ✓ {settings.credentials_path}")
    token_file = settings.token_dir / "token.json"
    print(f"  {'✓' if token_file.exists() else '…'} {token_file}")

    print("\nAll prerequisites met. Listing unread messages (dry run) ...\n")

    from src.orchestrator import MarkReadOrchestrator

    result = MarkReadOrchestrator(settings=settings, dry_run=True).run()

    for step in result.steps:
        status = "SKIPPED" if step.skipped else ("OK" if step.success else "FAILED")
        print(f"  {step.name}: {status} ({step.duration_seconds}s)")
        for key, value in step.details.items():
            print(f"    {key}: {value}")
        if step.error:
            print(f"    error: {step.error}")

    overall = "PASS" if result.success else "FAIL"
    print(f"\nResult: {overall}")
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
