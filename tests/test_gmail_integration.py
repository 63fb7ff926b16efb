"""
Integration test for Gmail API credentials and unread listing.

Read-only: nothing is marked as read. Skipped unless a client secret
exists at config/credentials.json (or GMAIL_CREDENTIALS_PATH).

Run with: python -m pytest tests/test_gmail_integration.py -v
"""

import pytest

from src.config import Settings
from src.fetcher import GmailAuthenticator, GmailMailbox, UnreadMessageLister
from src.throttle import ThrottledCallExecutor

SETTINGS = Settings.from_env()

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not SETTINGS.credentials_path.exists(),
        reason=f"Client secret not found at {SETTINGS.credentials_path}",
    ),
]


class TestGmailIntegration:
    """Integration tests for Gmail API."""

    @pytest.fixture(scope="class")
    def mailbox(self):
        """Authenticate once for all tests in this class."""
        authenticator = GmailAuthenticator(
            credentials_path=SETTINGS.credentials_path,
            token_dir=SETTINGS.token_dir,
            interactive=SETTINGS.interactive,
        )
        return GmailMailbox(authenticator=authenticator)

    def test_can_list_one_page(self, mailbox):
        page = mailbox.list_message_ids(page_size=5)

        assert isinstance(page.message_ids, list)
        assert len(page.message_ids) <= 5
        print(f"\nFirst page: {len(page.message_ids)} unread ids, more={not page.is_last}")

    def test_lister_through_executor(self, mailbox):
        executor = ThrottledCallExecutor(max_concurrency=2, quota=50)
        ids = UnreadMessageLister(mailbox, executor).list_pending()

        assert len(ids) == len(set(ids))
        assert executor.budget.requests_used >= 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
