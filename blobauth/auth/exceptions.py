"""
Exceptions raised by the blobauth signing layer.

Author: BlobAuth Team
Date: 2026-10-18
"""

from typing import Optional


class BlobAuthError(Exception):
    """Base exception for blobauth errors."""

    def __init__(self, message: str, error_code: str = "BlobAuthError"):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class ConfigurationError(BlobAuthError):
    """Raised when credential settings are missing, partial or malformed."""

    def __init__(self, message: str = "Invalid storage credential configuration"):
        super().__init__(message, "ConfigurationError")


class SigningInputError(BlobAuthError):
    """Raised when an unknown resource type or permission is passed for signing."""

    def __init__(self, message: str = "Invalid signing input"):
        super().__init__(message, "SigningInputError")


class DelegationKeyFetchError(BlobAuthError):
    """Raised when the storage service does not return a user delegation key."""

    def __init__(
        self,
        message: str = "Failed to fetch user delegation key",
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message, "DelegationKeyFetchError")
