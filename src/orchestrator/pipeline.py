"""MarkReadOrchestrator - lists unread inbox mail and marks every message read."""

import functools
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from src.config import Settings
from src.dispatch import Dispatcher, ItemOutcome
from src.fetcher import GmailAuthenticator, GmailMailbox, UnreadMessageLister
from src.throttle import RetryPolicy, ThrottledCallExecutor

from .models import PipelineResult, StepResult

logger = logging.getLogger(__name__)


class MarkReadOrchestrator:
    """Orchestrates the mark-all-read run.

    Steps:
        1. list_unread: page through unread inbox message ids
        2. mark_read: remove UNREAD from each id concurrently

    Every Gmail call goes through one shared ThrottledCallExecutor. Any
    collaborator not injected is built lazily from Settings.

    Example:
        result = MarkReadOrchestrator().run()
        print(f"Success: {result.success}")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        mailbox: Optional[GmailMailbox] = None,
        executor: Optional[ThrottledCallExecutor] = None,
        lister: Optional[UnreadMessageLister] = None,
        dispatcher: Optional[Dispatcher] = None,
        dry_run: bool = False,
    ):
        self._settings = settings or Settings()
        self._mailbox = mailbox
        self._executor = executor
        self._lister = lister
        self._dispatcher = dispatcher
        self._dry_run = dry_run

    def _get_mailbox(self) -> GmailMailbox:
        if self._mailbox is None:
            authenticator = GmailAuthenticator(
                credentials_path=self._settings.credentials_path,
                token_dir=self._settings.token_dir,
                interactive=self._settings.interactive,
            )
            self._mailbox = GmailMailbox(authenticator=authenticator)
        return self._mailbox

    def _get_executor(self) -> ThrottledCallExecutor:
        if self._executor is None:
            self._executor = ThrottledCallExecutor(
                max_concurrency=self._settings.max_concurrency,
                quota=self._settings.quota,
                window_seconds=self._settings.window_seconds,
                policy=RetryPolicy(
                    max_attempts=self._settings.max_attempts,
                    base_delay_ms=self._settings.base_delay_ms,
                ),
            )
        return self._executor

    def _get_lister(self) -> UnreadMessageLister:
        if self._lister is None:
            self._lister = UnreadMessageLister(
                self._get_mailbox(),
                self._get_executor(),
                page_size=self._settings.page_size,
            )
        return self._lister

    def _get_dispatcher(self) -> Dispatcher:
        if self._dispatcher is None:
            self._dispatcher = Dispatcher(max_workers=self._settings.max_concurrency)
        return self._dispatcher

    @staticmethod
    def _skip_step(name: str, success: bool = False) -> StepResult:
        """Record a step as skipped (after a prior failure, or in dry-run mode)."""
        return StepResult(
            name=name,
            success=success,
            duration_seconds=0.0,
            details={},
            skipped=True,
        )

    def _run_step(self, name: str, fn: Callable[[], dict]) -> StepResult:
        """Run a pipeline step with timing and error isolation."""
        start = time.monotonic()
        try:
            details = fn()
            duration = time.monotonic() - start
            return StepResult(
                name=name,
                success=True,
                duration_seconds=round(duration, 2),
                details=details,
            )
        except Exception as e:
            duration = time.monotonic() - start
            logger.exception("Step '%s' failed", name)
            return StepResult(
                name=name,
                success=False,
                duration_seconds=round(duration, 2),
                details={},
                error=str(e),
            )

    @staticmethod
    def mark_one(
        executor: ThrottledCallExecutor, mailbox: GmailMailbox, message_id: str
    ) -> None:
        """Mark a single message read through the shared executor."""
        executor.execute(
            lambda: mailbox.mark_as_read(message_id),
            f"mark {message_id} read",
        )

    @staticmethod
    def _report_progress(outcome: ItemOutcome[str]) -> None:
        if outcome.success:
            logger.info("Message %s marked as read.", outcome.item)

    def run(self) -> PipelineResult:
        """Execute the full pipeline.

        Returns:
            PipelineResult with per-step metrics.
        """
        result = PipelineResult(started_at=datetime.now(timezone.utc))
        message_ids: list[str] = []

        def list_step() -> dict:
            nonlocal message_ids
            message_ids = self._get_lister().list_pending()
            return {"unread_found": len(message_ids)}

        list_result = self._run_step("list_unread", list_step)
        result.steps.append(list_result)

        if not list_result.success:
            result.steps.append(self._skip_step("mark_read"))
            result.finished_at = datetime.now(timezone.utc)
            return result

        if self._dry_run:
            logger.info("Dry run: leaving %d messages unread", len(message_ids))
            result.steps.append(self._skip_step("mark_read", success=True))
            result.finished_at = datetime.now(timezone.utc)
            return result

        def mark_read_step() -> dict:
            if not message_ids:
                return {"marked_read": 0}

            # Resolved here so every worker shares one executor and mailbox
            action = functools.partial(self.mark_one, self._get_executor(), self._get_mailbox())
            dispatch = self._get_dispatcher().apply_to_all(
                message_ids, action, on_complete=self._report_progress
            )
            if not dispatch.success:
                logger.error(
                    "%d of %d messages could not be marked read",
                    len(dispatch.failed),
                    len(message_ids),
                )
                dispatch.raise_first_failure()
            return {"marked_read": len(dispatch.succeeded)}

        result.steps.append(self._run_step("mark_read", mark_read_step))

        result.finished_at = datetime.now(timezone.utc)
        return result
