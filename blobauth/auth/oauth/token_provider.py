"""
Bearer token acquisition for Azure Storage.

Implements the OAuth 2.0 client-credentials flow against the Microsoft
identity platform v2.0 token endpoint, either with a federated client
assertion (workload / managed identity) or with a client secret (service
principal). Tokens are cached per identity until shortly before they expire.

When a fetch fails the provider logs the reason and returns the sentinel
``"No token"``; the storage request carrying it is then rejected by the
service. With ``strict=True`` a TokenFetchError is raised instead.

Author: BlobAuth Team
Date: 2026-10-18
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Union

import httpx
import jwt

from blobauth.auth.credentials import FileAssertionSource, IdentityAssertionSource
from blobauth.auth.oauth.exceptions import TokenFetchError
from blobauth.auth.oauth.token_cache import BearerTokenCache, cache_key
from blobauth.core.clock import Clock, SystemClock, epoch_seconds

logger = logging.getLogger(__name__)

NO_TOKEN = "No token"

STORAGE_SCOPE = "https://storage.azure.com/.default"
CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
DEFAULT_AUTH_URL = "https://login.microsoftonline.com"
DEFAULT_EXPIRY_MARGIN_SECONDS = 10


class BearerTokenProvider:
    """
    Fetches and caches bearer tokens for the storage scope.

    Supports:
    - Federated assertion flow (managed / workload identity)
    - Client secret flow (service principal)
    - Per-identity caching with an expiry safety margin
    """

    def __init__(
        self,
        http_client: httpx.Client,
        auth_url: str = DEFAULT_AUTH_URL,
        cache: Optional[BearerTokenCache] = None,
        clock: Optional[Clock] = None,
        expiry_margin_seconds: int = DEFAULT_EXPIRY_MARGIN_SECONDS,
        strict: bool = False,
    ):
        """
        Initialize token provider.

        Args:
            http_client: Transport used for token requests
            auth_url: Identity platform base URL
            cache: Token cache, a private one is created if None
            clock: Time source, system clock if None
            expiry_margin_seconds: Seconds subtracted from the reported lifetime
            strict: Raise TokenFetchError instead of returning the sentinel
        """
        self.http_client = http_client
        self.auth_url = auth_url.rstrip("/")
        self.cache = cache if cache is not None else BearerTokenCache()
        self.clock = clock or SystemClock()
        self.expiry_margin_seconds = expiry_margin_seconds
        self.strict = strict

    def get_token(
        self,
        client_id: str,
        tenant_id: str,
        identity_assertion_source: Union[IdentityAssertionSource, str],
    ) -> str:
        """
        Get a bearer token using a federated client assertion.

        The assertion is read from its source on every fetch, never cached.

        Args:
            client_id: Application (client) ID
            tenant_id: Directory (tenant) ID
            identity_assertion_source: Assertion source or path to a token file

        Returns:
            Access token, or ``"No token"`` if fetching failed
        """
        if isinstance(identity_assertion_source, str):
            identity_assertion_source = FileAssertionSource(identity_assertion_source)

        def build_form() -> Dict[str, str]:
            assertion = identity_assertion_source.read()
            self._warn_if_assertion_expired(assertion)
            return {
                "client_id": client_id,
                "grant_type": "client_credentials",
                "scope": STORAGE_SCOPE,
                "client_assertion": assertion,
                "client_assertion_type": CLIENT_ASSERTION_TYPE,
            }

        return self._get_cached(client_id, tenant_id, build_form)

    def get_token_with_secret(self, client_id: str, client_secret: str, tenant_id: str) -> str:
        """
        Get a bearer token using a client secret.

        Returns:
            Access token, or ``"No token"`` if fetching failed
        """

        def build_form() -> Dict[str, str]:
            return {
                "client_id": client_id,
                "client_secret": client_secret,
                "grant_type": "client_credentials",
                "scope": STORAGE_SCOPE,
            }

        return self._get_cached(client_id, tenant_id, build_form)

    def invalidate(self, client_id: str, tenant_id: str) -> None:
        """Drop the cached token of an identity."""
        self.cache.invalidate(cache_key(client_id, tenant_id))

    def token_endpoint(self, tenant_id: str) -> str:
        return f"{self.auth_url}/{tenant_id}/oauth2/v2.0/token"

    def _get_cached(
        self,
        client_id: str,
        tenant_id: str,
        build_form: Callable[[], Dict[str, str]],
    ) -> str:
        key = cache_key(client_id, tenant_id)

        token = self.cache.get(key, epoch_seconds(self.clock))
        if token is not None:
            return token

        try:
            payload = self.fetch_bearer_token(tenant_id, build_form())
        except TokenFetchError:
            if self.strict:
                raise
            return NO_TOKEN

        expires_at = epoch_seconds(self.clock) + payload["expires_in"] - self.expiry_margin_seconds
        self.cache.put(key, payload["access_token"], expires_at)

        logger.info(f"Fetched bearer token for client {client_id}, cached until {expires_at}")
        return payload["access_token"]

    def fetch_bearer_token(self, tenant_id: str, form: Dict[str, str]) -> Dict:
        """
        Request a token from the token endpoint.

        Args:
            tenant_id: Directory (tenant) ID
            form: Form fields of the token request

        Returns:
            Dict with ``access_token`` (str) and ``expires_in`` (int seconds)

        Raises:
            TokenFetchError: On transport error, non-200 status or malformed body
        """
        url = self.token_endpoint(tenant_id)

        try:
            response = self.http_client.post(
                url,
                data=form,
                headers={"content-type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch bearer token. Reason: {e}")
            raise TokenFetchError(f"Token request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                f"Failed to fetch bearer token. Reason: {response.status_code}: {response.text}"
            )
            raise TokenFetchError(
                f"Token endpoint returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            body = response.json()
            return {
                "access_token": body["access_token"],
                "expires_in": int(body["expires_in"]),
            }
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to fetch bearer token. Reason: malformed response: {e}")
            raise TokenFetchError(
                "Malformed token response",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def _warn_if_assertion_expired(self, assertion: str) -> None:
        """Log a warning when the federated assertion JWT has already expired."""
        try:
            claims = jwt.decode(assertion, options={"verify_signature": False})
        except jwt.PyJWTError:
            return

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            return

        now = self.clock.now()
        if datetime.fromtimestamp(exp, tz=timezone.utc) <= now:
            logger.warning(
                f"Federated identity assertion expired at "
                f"{datetime.fromtimestamp(exp, tz=timezone.utc).isoformat()}"
            )
