"""Data models for the fetcher module."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class MessagePage:
    """One page of a Gmail messages.list response.

    Attributes:
        message_ids: Message IDs on this page, in provider order
        next_page_token: Continuation cursor, None on the last page
    """

    message_ids: list[str] = field(default_factory=list)
    next_page_token: Optional[str] = None

    @property
    def is_last(self) -> bool:
        return self.next_page_token is None

    @classmethod
    def from_response(cls, response: dict) -> "MessagePage":
        """Build a page from a raw messages.list response."""
        return cls(
            message_ids=[m["id"] for m in response.get("messages", [])],
            next_page_token=response.get("nextPageToken") or None,
        )
