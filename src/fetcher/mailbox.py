"""GmailMailbox - thin, thread-safe wrapper around the Gmail messages API."""

import logging
import threading
from typing import Any, NoReturn, Optional

import httplib2
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from src.throttle import RateLimitedError

from .exceptions import GmailAPIError
from .gmail_auth import GmailAuthenticator
from .models import MessagePage

logger = logging.getLogger(__name__)

UNREAD_LABEL = "UNREAD"
INBOX_LABEL = "INBOX"
LIST_PAGE_SIZE = 500  # Gmail API maximum for messages.list

# 403 reasons Gmail uses for per-user throttling
RATE_LIMIT_REASONS = ("rateLimitExceeded", "userRateLimitExceeded")


def _error_reasons(error: HttpError) -> list[str]:
    details = getattr(error, "error_details", None) or []
    if not isinstance(details, list):
        return []
    return [d.get("reason", "") for d in details if isinstance(d, dict)]


def is_rate_limit_response(error: HttpError) -> bool:
    """True if an HttpError is Gmail telling the caller to slow down."""
    status = getattr(error.resp, "status", None)
    if status == 429:
        return True
    if status == 403:
        reasons = _error_reasons(error)
        message = str(error)
        return any(tag in reasons or tag in message for tag in RATE_LIMIT_REASONS)
    return False


class GmailMailbox:
    """Lists and relabels messages for one Gmail user.

    googleapiclient shares a single httplib2.Http per service, which is not
    thread-safe, so each worker thread executes requests on its own
    AuthorizedHttp built from the shared credentials.

    Errors are translated at this boundary:
        - 429, or 403 with a rate-limit reason -> RateLimitedError
        - any other HttpError -> GmailAPIError
    """

    def __init__(
        self,
        authenticator: Optional[GmailAuthenticator] = None,
        service: Optional[Resource] = None,
        user_id: str = "me",
    ):
        """Initialize the mailbox.

        Args:
            authenticator: Gmail authenticator instance.
                Defaults to GmailAuthenticator with default paths.
            service: Pre-built Gmail API service (for testing).
                If provided, authenticator is ignored and requests execute
                on the service's own transport.
            user_id: Gmail user whose mailbox is accessed.
        """
        self._auth = authenticator
        self._service = service
        self._user_id = user_id
        self._credentials = None
        self._local = threading.local()
        self._init_lock = threading.Lock()

    @property
    def user_id(self) -> str:
        return self._user_id

    def _get_service(self) -> Resource:
        """Get Gmail API service, authenticating on first use."""
        with self._init_lock:
            if self._service is None:
                if self._auth is None:
                    self._auth = GmailAuthenticator()
                self._service = self._auth.get_service()
                self._credentials = self._auth.credentials
        return self._service

    def _thread_http(self) -> Optional[AuthorizedHttp]:
        if self._credentials is None:
            return None
        http = getattr(self._local, "http", None)
        if http is None:
            http = AuthorizedHttp(self._credentials, http=httplib2.Http())
            self._local.http = http
        return http

    def _handle_http_error(self, error: HttpError, context: str) -> NoReturn:
        """Convert HttpError to the throttle/fetcher error taxonomy."""
        status_code = error.resp.status
        reason = error.reason if hasattr(error, "reason") else str(error)

        if is_rate_limit_response(error):
            retry_after = error.resp.get("retry-after")
            raise RateLimitedError(
                f"{context}: Gmail API rate limit exceeded",
                retry_after=int(retry_after) if retry_after and str(retry_after).isdigit() else None,
            ) from error

        logger.error("Gmail API error (status=%s) during %s: %s", status_code, context, reason)
        raise GmailAPIError(
            f"{context}: Gmail API error: {reason}",
            status_code=status_code,
            reason=reason,
        ) from error

    def _execute(self, request: Any, context: str) -> Any:
        http = self._thread_http()
        try:
            if http is None:
                return request.execute()
            return request.execute(http=http)
        except HttpError as e:
            self._handle_http_error(e, context)

    def list_message_ids(
        self,
        page_token: Optional[str] = None,
        query: str = "is:unread",
        label_ids: Optional[list[str]] = None,
        include_spam_trash: bool = False,
        page_size: int = LIST_PAGE_SIZE,
    ) -> MessagePage:
        """Fetch one page of message IDs matching a filter.

        Args:
            page_token: Continuation cursor from the previous page.
            query: Gmail search query.
            label_ids: Labels every returned message must carry. Defaults to INBOX.
            include_spam_trash: Whether to include SPAM and TRASH.
            page_size: maxResults for the page.

        Returns:
            MessagePage with ids and the next cursor (None on the last page)
        """
        service = self._get_service()
        request = (
            service.users()
            .messages()
            .list(
                userId=self._user_id,
                labelIds=label_ids if label_ids is not None else [INBOX_LABEL],
                includeSpamTrash=include_spam_trash,
                q=query,
                maxResults=page_size,
                pageToken=page_token,
            )
        )
        response = self._execute(request, "list messages")
        return MessagePage.from_response(response or {})

    def remove_labels(self, message_id: str, label_ids: list[str]) -> dict:
        """Remove labels from one message.

        Raises:
            RateLimitedError: If Gmail throttled the call
            GmailAPIError: For any other API failure
        """
        service = self._get_service()
        request = (
            service.users()
            .messages()
            .modify(
                userId=self._user_id,
                id=message_id,
                body={"removeLabelIds": label_ids},
            )
        )
        return self._execute(request, f"modify message {message_id}")

    def mark_as_read(self, message_id: str) -> dict:
        """Clear the UNREAD label on a message."""
        return self.remove_labels(message_id, [UNREAD_LABEL])
