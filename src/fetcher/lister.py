"""UnreadMessageLister - collects the ids of every unread inbox message."""

import logging
from typing import Optional

from src.throttle import ThrottledCallExecutor

from .mailbox import INBOX_LABEL, LIST_PAGE_SIZE, GmailMailbox

logger = logging.getLogger(__name__)

UNREAD_QUERY = "is:unread"


class UnreadMessageLister:
    """Pages through messages.list and materializes the matching ids.

    Filter: INBOX label, spam and trash excluded, ``is:unread``. Each page
    is fetched through the executor so list calls share the same quota and
    retry behavior as modify calls.

    Example:
        lister = UnreadMessageLister(mailbox, executor)
        ids = lister.list_pending()
    """

    def __init__(
        self,
        mailbox: GmailMailbox,
        executor: Optional[ThrottledCallExecutor] = None,
        page_size: int = LIST_PAGE_SIZE,
        query: str = UNREAD_QUERY,
    ):
        self._mailbox = mailbox
        self._executor = executor or ThrottledCallExecutor()
        self._page_size = page_size
        self._query = query

    def list_pending(self) -> list[str]:
        """Return every unread inbox message id, in provider order.

        Pagination ends only when a page comes back without a continuation
        cursor. A page with no messages but a cursor keeps the loop going.
        """
        message_ids: list[str] = []
        page_token: Optional[str] = None
        pages = 0

        while True:
            token = page_token
            page = self._executor.execute(
                lambda: self._mailbox.list_message_ids(
                    page_token=token,
                    query=self._query,
                    label_ids=[INBOX_LABEL],
                    include_spam_trash=False,
                    page_size=self._page_size,
                ),
                "list messages",
            )
            pages += 1
            message_ids.extend(page.message_ids)
            logger.debug(
                "Page %d: %d ids (more=%s)", pages, len(page.message_ids), not page.is_last
            )

            if page.is_last:
                break
            page_token = page.next_page_token

        logger.info("Found %d unread messages across %d pages", len(message_ids), pages)
        return message_ids
