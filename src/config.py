"""Runtime settings for the mark-read job."""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).parent.parent


def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if not value:
        return default
    try:
        return cast(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def _env_int(name: str, default: int) -> int:
    return _env_number(name, default, int)


def _env_float(name: str, default: float) -> float:
    return _env_number(name, default, float)


@dataclass(frozen=True)
class Settings:
    """Settings for authentication, throttling and pagination.

    Defaults mirror Gmail's per-user limits closely enough for a
    single-user batch run: 100 in-flight calls, 100 calls per minute,
    5 attempts with a 1 s backoff base.
    """

    credentials_path: Path = PROJECT_ROOT / "config" / "credentials.json"
    token_dir: Path = PROJECT_ROOT / "config" / "token"
    interactive: bool = True

    max_concurrency: int = 100
    quota: int = 100
    window_seconds: float = 60.0
    max_attempts: int = 5
    base_delay_ms: int = 1000
    page_size: int = 500

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables (call load_dotenv first)."""
        defaults = cls()
        credentials = os.getenv("GMAIL_CREDENTIALS_PATH")
        token_dir = os.getenv("GMAIL_TOKEN_DIR")
        return cls(
            credentials_path=Path(credentials) if credentials else defaults.credentials_path,
            token_dir=Path(token_dir) if token_dir else defaults.token_dir,
            interactive=not os.getenv("GMAIL_NON_INTERACTIVE"),
            max_concurrency=_env_int("MARK_READ_MAX_CONCURRENCY", defaults.max_concurrency),
            quota=_env_int("MARK_READ_QUOTA", defaults.quota),
            window_seconds=_env_float("MARK_READ_WINDOW_SECONDS", defaults.window_seconds),
            max_attempts=_env_int("MARK_READ_MAX_ATTEMPTS", defaults.max_attempts),
            base_delay_ms=_env_int("MARK_READ_BASE_DELAY_MS", defaults.base_delay_ms),
            page_size=_env_int("MARK_READ_PAGE_SIZE", defaults.page_size),
        )

    def with_overrides(self, **overrides: Optional[object]) -> "Settings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def validate(self) -> None:
        """Validate settings.

        Raises:
            ValueError: If any limit is out of range
        """
        if self.max_concurrency < 1:
            raise ValueError("Max concurrency must be at least 1")
        if self.quota < 1:
            raise ValueError("Quota must be at least 1")
        if self.window_seconds <= 0:
            raise ValueError("Window length must be positive")
        if self.max_attempts < 1:
            raise ValueError("Max attempts must be at least 1")
        if self.base_delay_ms < 0:
            raise ValueError("Base delay must be non-negative")
        if not 1 <= self.page_size <= 500:
            raise ValueError(f"Page size ({self.page_size}) must be between 1 and 500")
