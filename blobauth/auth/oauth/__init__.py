"""
OAuth 2.0 client-credentials support for blobauth.

Author: BlobAuth Team
Date: 2026-10-18
"""

from blobauth.auth.oauth.token_cache import (
    BearerTokenCache,
    BearerTokenCacheEntry,
    cache_key,
)
from blobauth.auth.oauth.token_provider import (
    NO_TOKEN,
    BearerTokenProvider,
)
from blobauth.auth.oauth.exceptions import (
    OAuthError,
    TokenFetchError,
)

__all__ = [
    # Cache
    "BearerTokenCache",
    "BearerTokenCacheEntry",
    "cache_key",
    # Provider
    "NO_TOKEN",
    "BearerTokenProvider",
    # Exceptions
    "OAuthError",
    "TokenFetchError",
]
