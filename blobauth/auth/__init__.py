"""
blobauth authentication module.

Provides SharedKey signing, bearer token acquisition and the dispatcher that
picks between them based on the configured credential.

Author: BlobAuth Team
Date: 2026-10-18
"""

from blobauth.auth.credentials import (
    AccountKey,
    Credential,
    FileAssertionSource,
    IdentityAssertionSource,
    ManagedIdentity,
    ServicePrincipal,
    StaticAssertionSource,
)
from blobauth.auth.exceptions import (
    BlobAuthError,
    ConfigurationError,
    DelegationKeyFetchError,
    SigningInputError,
)
from blobauth.auth.request import SignableRequest
from blobauth.auth.sharedkey import (
    build_canonical_string,
    compute_signature,
    parse_authorization_header,
    sign,
)
from blobauth.auth.strategy import AuthStrategy, add_bearer_token

__all__ = [
    # Credentials
    "AccountKey",
    "Credential",
    "FileAssertionSource",
    "IdentityAssertionSource",
    "ManagedIdentity",
    "ServicePrincipal",
    "StaticAssertionSource",
    # Exceptions
    "BlobAuthError",
    "ConfigurationError",
    "DelegationKeyFetchError",
    "SigningInputError",
    # SharedKey
    "SignableRequest",
    "build_canonical_string",
    "compute_signature",
    "parse_authorization_header",
    "sign",
    # Dispatch
    "AuthStrategy",
    "add_bearer_token",
]
