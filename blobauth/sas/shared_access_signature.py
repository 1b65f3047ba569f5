"""
Shared access signature URLs for Blob Storage resources.

Author: BlobAuth Team
Date: 2026-10-18
"""

import logging
from datetime import datetime
from typing import Iterable, Optional, Union

from blobauth.auth.credentials import AccountKey, Credential, ManagedIdentity
from blobauth.auth.exceptions import ConfigurationError
from blobauth.core.clock import Clock, SystemClock
from blobauth.sas import service_sas
from blobauth.sas.shared import (
    Expiry,
    SASPermission,
    SASResourceType,
    join_path,
    to_permission,
    to_resource_type,
)
from blobauth.sas.user_delegation_sas import UserDelegationSAS

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_SECONDS = 3600


class SharedAccessSignature:
    """Issues SAS URLs with the configured credential."""

    def __init__(
        self,
        credential: Credential,
        storage_account_name: str,
        api_url: str,
        user_delegation_sas: Optional[UserDelegationSAS] = None,
        clock: Optional[Clock] = None,
    ):
        self.credential = credential
        self.storage_account_name = storage_account_name
        self.api_url = api_url.rstrip("/")
        self.user_delegation_sas = user_delegation_sas
        self.clock = clock or SystemClock()

    def sas_url(
        self,
        container: str,
        resource: str = "/",
        *,
        resource_type: Union[SASResourceType, str] = SASResourceType.CONTAINER,
        permissions: Iterable[Union[SASPermission, str]] = (SASPermission.READ,),
        start: Optional[datetime] = None,
        expiry: Expiry = DEFAULT_EXPIRY_SECONDS,
    ) -> str:
        """
        Generate a SAS URL on a resource in a container.

        Args:
            container: Storage container name
            resource: Path of the resource inside the container ("/" for the container)
            resource_type: blob, blob_version, blob_snapshot, container or directory
            permissions: Permission atoms, e.g. ``[SASPermission.READ, "write"]``
            start: When validity begins, defaults to now
            expiry: Seconds or timedelta after ``start``, or an absolute datetime

        Returns:
            ``{api_url}/{container}/{resource}?{token}``

        Raises:
            ConfigurationError: If the credential cannot issue SAS tokens
            SigningInputError: On unknown resource types or permissions
            DelegationKeyFetchError: If a user delegation key cannot be obtained

        Examples:
            sas.sas_url("my_container", "/", permissions=["write"], expiry=timedelta(days=2))
            sas.sas_url("my_container", "foo/song.mp3", resource_type="blob")
        """
        resource_type = to_resource_type(resource_type)
        permissions = [to_permission(p) for p in permissions]
        if start is None:
            start = self.clock.now()
        path = join_path(container, resource)

        credential = self.credential
        if isinstance(credential, AccountKey):
            token = service_sas.build_token(
                resource_type,
                path,
                (start, expiry),
                permissions,
                self.storage_account_name,
                credential.key,
            )
        elif isinstance(credential, ManagedIdentity):
            if self.user_delegation_sas is None:
                raise ConfigurationError("User delegation SAS requires an HTTP client")
            token = self.user_delegation_sas.build_token(
                resource_type,
                path,
                (start, expiry),
                permissions,
                self.storage_account_name,
            )
        else:
            raise ConfigurationError(
                "Only account key or managed identity authentication supports SAS"
            )

        logger.info(
            f"Issued SAS for {path} (sr={resource_type.value}, "
            f"credential={type(credential).__name__})"
        )
        return f"{self.api_url}/{path}?{token}"
