"""
Entry point wiring configuration, credentials, token cache and SAS issuance.

Author: BlobAuth Team
Date: 2026-10-18
"""

import logging
from typing import Optional

import httpx

from blobauth.auth.credentials import Credential, credential_kind
from blobauth.auth.oauth.token_cache import BearerTokenCache
from blobauth.auth.oauth.token_provider import BearerTokenProvider
from blobauth.auth.request import SignableRequest
from blobauth.auth.strategy import AuthStrategy
from blobauth.core.clock import Clock, SystemClock
from blobauth.core.config_manager import BlobAuthConfig, ConfigManager
from blobauth.sas.shared_access_signature import SharedAccessSignature
from blobauth.sas.user_delegation_sas import UserDelegationSAS

logger = logging.getLogger(__name__)


class BlobAuthClient:
    """
    Authorizes Blob Storage requests and issues SAS URLs.

    The credential is resolved from the configuration when the client is
    built, so missing or partial credential settings fail here. The account
    name and blob endpoint are only needed for SAS URLs and are resolved on
    first use.
    """

    def __init__(
        self,
        config: BlobAuthConfig,
        http_client: Optional[httpx.Client] = None,
        clock: Optional[Clock] = None,
        token_cache: Optional[BearerTokenCache] = None,
        credential: Optional[Credential] = None,
    ):
        """
        Initialize client.

        Args:
            config: Loaded configuration
            http_client: Transport for token and delegation key requests;
                         one is created (and owned) if None
            clock: Time source, system clock if None
            token_cache: Bearer token cache, a fresh one if None
            credential: Explicit credential, resolved from config if None
        """
        self.config = config
        self.clock = clock or SystemClock()
        self.credential = credential if credential is not None else config.auth_method()

        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=config.http_timeout)

        self.token_cache = token_cache if token_cache is not None else BearerTokenCache()
        self.token_provider = BearerTokenProvider(
            self.http_client,
            auth_url=config.auth_url,
            cache=self.token_cache,
            clock=self.clock,
            expiry_margin_seconds=config.token_expiry_margin_seconds,
            strict=config.strict_token_errors,
        )
        self.auth_strategy = AuthStrategy(self.credential, self.token_provider, clock=self.clock)

        # Account name and endpoint are resolved on first SAS use
        self._sas: Optional[SharedAccessSignature] = None

        logger.info(f"BlobAuthClient ready: credential={credential_kind(self.credential)}")

    @classmethod
    def from_config(cls, config: BlobAuthConfig, **kwargs) -> "BlobAuthClient":
        return cls(config, **kwargs)

    @classmethod
    def from_env(cls, config_file: Optional[str] = None, **kwargs) -> "BlobAuthClient":
        """Load configuration from the environment (and an optional file)."""
        return cls(ConfigManager().load(config_file=config_file), **kwargs)

    @property
    def api_url(self) -> str:
        return self.config.api_base_url()

    @property
    def sas(self) -> SharedAccessSignature:
        """
        SAS issuer for the configured account.

        Raises:
            ConfigurationError: If the account name or blob endpoint is missing
        """
        if self._sas is None:
            api_url = self.api_url
            self._sas = SharedAccessSignature(
                self.credential,
                storage_account_name=self.config.account_name(),
                api_url=api_url,
                user_delegation_sas=UserDelegationSAS(self.auth_strategy, self.http_client, api_url),
                clock=self.clock,
            )
        return self._sas

    def authorize_request(
        self,
        request: SignableRequest,
        content_type: Optional[str] = None,
    ) -> SignableRequest:
        """Decorate a request with authorization and standard headers."""
        return self.auth_strategy.authorize(request, content_type)

    def sas_url(self, container: Optional[str], resource: str = "/", **options) -> str:
        """
        Signed URL for a resource; see SharedAccessSignature.sas_url.

        ``container=None`` uses the configured default container.
        """
        if container is None:
            container = self.config.container()
        return self.sas.sas_url(container, resource, **options)

    def send(
        self,
        request: SignableRequest,
        content_type: Optional[str] = None,
    ) -> httpx.Response:
        """Authorize ``request`` and transmit it with the HTTP client."""
        request = self.authorize_request(request, content_type)
        return self.http_client.request(
            request.method,
            request.url,
            params=request.params,
            headers=request.effective_headers(),
            content=request.body,
        )

    def close(self) -> None:
        if self._owns_http_client:
            self.http_client.close()

    def __enter__(self) -> "BlobAuthClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
