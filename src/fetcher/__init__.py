"""Gmail access for the mark-read job.

This module provides authentication, a thread-safe mailbox wrapper and
the lister that enumerates unread inbox messages.

Public API:
    - GmailAuthenticator: OAuth helper with a cached token directory
    - GmailMailbox: list-page and label-removal calls
    - UnreadMessageLister: Cursor pagination over unread inbox ids
    - MessagePage: One page of message ids plus the next cursor
    - AuthenticationError: Base exception for auth failures
    - ScopeMismatchError: Token scopes don't match required scopes
    - NonInteractiveAuthError: Auth requires interaction but in non-interactive mode
    - GmailAPIError: Non-throttling Gmail API failure
"""

from .exceptions import (
    AuthenticationError,
    GmailAPIError,
    NonInteractiveAuthError,
    ScopeMismatchError,
)
from .gmail_auth import GmailAuthenticator
from .lister import UnreadMessageLister
from .mailbox import GmailMailbox, is_rate_limit_response
from .models import MessagePage

__all__ = [
    "GmailAuthenticator",
    "GmailMailbox",
    "UnreadMessageLister",
    "MessagePage",
    "is_rate_limit_response",
    "AuthenticationError",
    "ScopeMismatchError",
    "NonInteractiveAuthError",
    "GmailAPIError",
]
