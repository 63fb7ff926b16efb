"""OAuth credentials for the Gmail API, cached in a token directory."""

import logging
import os
from pathlib import Path
from typing import Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import Resource, build

from .exceptions import NonInteractiveAuthError, ScopeMismatchError

logger = logging.getLogger(__name__)

# Removing the UNREAD label needs modify access
DEFAULT_SCOPES = ["https://www.googleapis.com/auth/gmail.modify"]

TOKEN_FILENAME = "token.json"

_CONFIG_DIR = Path(__file__).parent.parent.parent / "config"


def _resolve_path(explicit: Optional[Path], env_var: str, default: Path) -> Path:
    if explicit:
        return Path(explicit)
    from_env = os.environ.get(env_var)
    return Path(from_env) if from_env else default


class GmailAuthenticator:
    """Supplies renewable Gmail credentials for the mark-read job.

    Resolution order on first use:
        1. cached ``<token_dir>/token.json`` with the required scopes
        2. refresh of an expired cached token
        3. installed-app browser flow using the client secret file

    Any newly obtained or refreshed token is written back to the token
    directory. With ``interactive=False`` (or GMAIL_NON_INTERACTIVE set)
    step 3 raises instead of opening a browser.
    """

    def __init__(
        self,
        credentials_path: Optional[Path] = None,
        token_dir: Optional[Path] = None,
        scopes: Optional[list[str]] = None,
        interactive: bool = True,
    ):
        """Initialize the authenticator.

        Args:
            credentials_path: OAuth client secret JSON. Falls back to
                GMAIL_CREDENTIALS_PATH, then config/credentials.json.
            token_dir: Directory for the cached token. Falls back to
                GMAIL_TOKEN_DIR, then config/token.
            scopes: Scopes to request. Defaults to gmail.modify.
            interactive: Allow the browser flow.
        """
        self._credentials_path = _resolve_path(
            credentials_path, "GMAIL_CREDENTIALS_PATH", _CONFIG_DIR / "credentials.json"
        )
        self._token_dir = _resolve_path(token_dir, "GMAIL_TOKEN_DIR", _CONFIG_DIR / "token")
        self._scopes = scopes or DEFAULT_SCOPES
        self._interactive = interactive and not os.environ.get("GMAIL_NON_INTERACTIVE")
        self._credentials: Optional[Credentials] = None
        self._service: Optional[Resource] = None

    @property
    def token_path(self) -> Path:
        return self._token_dir / TOKEN_FILENAME

    @property
    def credentials_path(self) -> Path:
        return self._credentials_path

    @property
    def credentials(self) -> Optional[Credentials]:
        """Credentials obtained so far, None before the first get_credentials()."""
        return self._credentials

    def _has_required_scopes(self, creds: Credentials) -> bool:
        # granted_scopes reflects the token file, scopes only what was requested at load
        granted = creds.granted_scopes or creds.scopes or []
        return bool(granted) and set(self._scopes).issubset(granted)

    def _load_cached(self) -> Optional[Credentials]:
        """Read the cached token, discarding it if its scopes are too narrow."""
        if not self.token_path.exists():
            return None

        creds = Credentials.from_authorized_user_file(str(self.token_path), self._scopes)
        if creds is None or self._has_required_scopes(creds):
            return creds

        if not self._interactive:
            raise ScopeMismatchError(
                required_scopes=self._scopes,
                token_scopes=list(creds.scopes) if creds.scopes else [],
            )
        logger.info("Cached token lacks required scopes; re-authenticating")
        self.token_path.unlink()
        return None

    def _authorize(self, stale: Optional[Credentials]) -> Credentials:
        """Run the browser flow for a fresh grant."""
        if not self._interactive:
            reason = "Token expired without refresh token" if stale else "No valid token exists"
            raise NonInteractiveAuthError(reason)

        if not self._credentials_path.exists():
            raise FileNotFoundError(
                f"Client secret file not found at {self._credentials_path}. "
                "Please download OAuth credentials from Google Cloud Console."
            )
        flow = InstalledAppFlow.from_client_secrets_file(str(self._credentials_path), self._scopes)
        return flow.run_local_server(port=0)

    def _persist(self, creds: Credentials) -> None:
        self._token_dir.mkdir(parents=True, exist_ok=True)
        self.token_path.write_text(creds.to_json())
        logger.info("Credential file saved to: %s", self.token_path)

    def get_credentials(self) -> Credentials:
        """Return valid credentials, authenticating on first call.

        Raises:
            FileNotFoundError: If the browser flow is needed and the client
                secret file is missing
            ScopeMismatchError: If the cached token's scopes are too narrow
                and running non-interactively
            NonInteractiveAuthError: If a fresh grant is needed but running
                non-interactively
        """
        if self._credentials is not None:
            return self._credentials

        creds = self._load_cached()
        if creds is None or not creds.valid:
            if creds is not None and creds.expired and creds.refresh_token:
                logger.debug("Refreshing expired Gmail token")
                creds.refresh(Request())
            else:
                creds = self._authorize(creds)
            self._persist(creds)

        self._credentials = creds
        return creds

    def get_service(self) -> Resource:
        """Get or lazily build the Gmail API service."""
        if self._service is None:
            self._service = build("gmail", "v1", credentials=self.get_credentials())
        return self._service
