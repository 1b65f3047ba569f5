"""
OAuth 2.0 exceptions for blobauth.

Author: BlobAuth Team
Date: 2026-10-18
"""

from typing import Optional

from blobauth.auth.exceptions import BlobAuthError


class OAuthError(BlobAuthError):
    """Base exception for OAuth errors."""

    def __init__(self, error: str, error_description: Optional[str] = None):
        self.error = error
        self.error_description = error_description
        super().__init__(error_description or error, error)


class TokenFetchError(OAuthError):
    """Raised when the token endpoint rejects a request or cannot be reached."""

    def __init__(
        self,
        description: str = "Failed to fetch bearer token",
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__("token_fetch_failed", description)
