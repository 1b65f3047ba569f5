"""
Authorization dispatcher.

Decorates a request with the headers required by the configured credential:
a SharedKey signature for account keys, or a bearer token plus the standard
headers for Azure AD identities.

Author: BlobAuth Team
Date: 2026-10-18
"""

import logging
from typing import Optional

from blobauth.auth import sharedkey
from blobauth.auth.credentials import (
    AccountKey,
    Credential,
    ManagedIdentity,
    ServicePrincipal,
)
from blobauth.auth.exceptions import ConfigurationError
from blobauth.auth.oauth.token_provider import BearerTokenProvider
from blobauth.auth.request import SignableRequest
from blobauth.auth.utils import put_standard_headers
from blobauth.core.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


def add_bearer_token(request: SignableRequest, token: str) -> SignableRequest:
    """Prepend ``Authorization: Bearer <token>``."""
    return request.prepend_header("Authorization", f"Bearer {token}")


class AuthStrategy:
    """Adds authentication headers based on the configured credential."""

    def __init__(
        self,
        credential: Credential,
        token_provider: BearerTokenProvider,
        clock: Optional[Clock] = None,
    ):
        self.credential = credential
        self.token_provider = token_provider
        self.clock = clock or SystemClock()

    def authorize(
        self,
        request: SignableRequest,
        content_type: Optional[str] = None,
    ) -> SignableRequest:
        """
        Authorize a request.

        Args:
            request: Request to decorate
            content_type: Optional content type header to add

        Returns:
            Decorated copy of the request

        Raises:
            ConfigurationError: If the credential type is unknown
        """
        credential = self.credential
        now = self.clock.now()

        if isinstance(credential, AccountKey):
            return sharedkey.sign(
                request,
                account_name=credential.name,
                account_key=credential.key,
                content_type=content_type,
                date=now,
            )

        if isinstance(credential, ServicePrincipal):
            token = self.token_provider.get_token_with_secret(
                credential.client_id,
                credential.client_secret,
                credential.tenant_id,
            )
            request = add_bearer_token(request, token)
            return put_standard_headers(request, content_type, now)

        if isinstance(credential, ManagedIdentity):
            token = self.token_provider.get_token(
                credential.client_id,
                credential.tenant_id,
                credential.identity_token_source,
            )
            request = add_bearer_token(request, token)
            return put_standard_headers(request, content_type, now)

        raise ConfigurationError(
            f"Unsupported credential type: {type(credential).__name__}"
        )
