"""Exceptions for the Gmail fetcher module."""


class AuthenticationError(Exception):
    """Raised when Gmail authentication fails."""

    pass


class ScopeMismatchError(AuthenticationError):
    """Raised when the cached token was granted different scopes.

    Happens when the token directory holds a token authorized for a
    narrower scope than gmail.modify.
    """

    def __init__(self, required_scopes: list[str], token_scopes: list[str]):
        self.required_scopes = required_scopes
        self.token_scopes = token_scopes
        missing = set(required_scopes) - set(token_scopes)
        super().__init__(
            f"Token scopes mismatch. Missing scopes: {missing}. "
            f"Required: {required_scopes}, Token has: {token_scopes}. "
            "Delete the cached token and re-authenticate."
        )


class NonInteractiveAuthError(AuthenticationError):
    """Raised when authentication needs a browser but GMAIL_NON_INTERACTIVE is set."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            f"Authentication requires user interaction but GMAIL_NON_INTERACTIVE=1 is set. "
            f"Reason: {reason}. "
            "Either run locally to re-authenticate, or update the cached token."
        )


class GmailAPIError(Exception):
    """Raised when a Gmail API call fails for a reason other than rate limiting."""

    def __init__(self, message: str, status_code: int | None = None, reason: str | None = None):
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)
