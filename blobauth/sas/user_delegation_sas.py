"""User delegation SAS signed with a key issued by the storage service.

The key is fetched with an authorized ``Get User Delegation Key`` request for
every token and is never cached.

Reference: https://learn.microsoft.com/en-us/rest/api/storageservices/create-user-delegation-sas
"""

import base64
import binascii
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Tuple, Union
from urllib.parse import urlencode

import httpx

from blobauth.auth.exceptions import DelegationKeyFetchError
from blobauth.auth.request import SignableRequest
from blobauth.auth.sharedkey import compute_signature
from blobauth.auth.strategy import AuthStrategy
from blobauth.sas.shared import (
    Expiry,
    SASPermission,
    SASResourceType,
    canonicalized_resource,
    se,
    sp,
    sr,
    st,
    sv,
)

logger = logging.getLogger(__name__)

SIGNED_FIELDS = (
    "SignedOid",
    "SignedTid",
    "SignedStart",
    "SignedExpiry",
    "SignedService",
    "SignedVersion",
)


@dataclass(frozen=True)
class UserDelegationKey:
    """Key material returned by the Get User Delegation Key operation."""

    signed_oid: str
    signed_tid: str
    signed_start: str
    signed_expiry: str
    signed_service: str
    signed_version: str
    value: bytes = field(repr=False)

    @classmethod
    def from_xml(cls, xml: Union[str, bytes]) -> "UserDelegationKey":
        """
        Parse a ``<UserDelegationKey>`` document.

        Raises:
            DelegationKeyFetchError: If the XML is malformed or incomplete
        """
        if isinstance(xml, str):
            xml = xml.encode("utf-8")

        try:
            root = ET.fromstring(xml.strip())
        except ET.ParseError as e:
            raise DelegationKeyFetchError(f"Invalid user delegation key XML: {e}") from e

        values = {}
        for name in SIGNED_FIELDS + ("Value",):
            text = root.findtext(name)
            if text is None:
                raise DelegationKeyFetchError(
                    f"User delegation key response is missing <{name}>"
                )
            values[name] = text.strip()

        try:
            key = base64.b64decode(values["Value"], validate=True)
        except (binascii.Error, ValueError) as e:
            raise DelegationKeyFetchError("User delegation key Value is not valid base64") from e

        return cls(
            signed_oid=values["SignedOid"],
            signed_tid=values["SignedTid"],
            signed_start=values["SignedStart"],
            signed_expiry=values["SignedExpiry"],
            signed_service=values["SignedService"],
            signed_version=values["SignedVersion"],
            value=key,
        )


def key_info_body(start: datetime, expiry: Expiry) -> str:
    """XML body of the Get User Delegation Key request."""
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        "<KeyInfo>\n"
        f"    <Start>{st(start)}</Start>\n"
        f"    <Expiry>{se(start, expiry)}</Expiry>\n"
        "</KeyInfo>\n"
    )


def string_to_sign(
    resource_type: Union[SASResourceType, str],
    resource: str,
    validity: Tuple[datetime, Expiry],
    permissions: Iterable[Union[SASPermission, str]],
    storage_account_name: str,
    key: UserDelegationKey,
) -> str:
    start, expiry = validity
    return "\n".join(
        [
            sp(permissions),
            st(start),
            se(start, expiry),
            canonicalized_resource(resource, storage_account_name),
            key.signed_oid,
            key.signed_tid,
            key.signed_start,
            key.signed_expiry,
            key.signed_service,
            key.signed_version,
            "",  # authorized user object id
            "",  # unauthorized user object id
            "",  # correlation id
            "",  # signed IP
            "",  # signed protocol
            sv(),
            sr(resource_type),
            "",  # snapshot time
            "",  # encryption scope
            "",  # rscc
            "",  # rscd
            "",  # rsce
            "",  # rscl
            "",  # rsct
        ]
    )


def build_token_with_key(
    resource_type: Union[SASResourceType, str],
    resource: str,
    validity: Tuple[datetime, Expiry],
    permissions: Iterable[Union[SASPermission, str]],
    storage_account_name: str,
    key: UserDelegationKey,
) -> str:
    """Build the SAS query string from an already fetched delegation key."""
    start, expiry = validity
    permissions = list(permissions)

    sig = compute_signature(
        string_to_sign(resource_type, resource, validity, permissions, storage_account_name, key),
        key.value,
    )

    return urlencode(
        [
            ("sv", sv()),
            ("st", st(start)),
            ("se", se(start, expiry)),
            ("sr", sr(resource_type)),
            ("sp", sp(permissions)),
            ("skoid", key.signed_oid),
            ("sktid", key.signed_tid),
            ("skt", key.signed_start),
            ("ske", key.signed_expiry),
            ("sks", key.signed_service),
            ("skv", key.signed_version),
            ("sig", sig),
        ]
    )


class UserDelegationSAS:
    """Builds user delegation SAS tokens, fetching a fresh key each time."""

    def __init__(self, auth_strategy: AuthStrategy, http_client: httpx.Client, api_url: str):
        self.auth_strategy = auth_strategy
        self.http_client = http_client
        self.api_url = api_url.rstrip("/")

    def build_token(
        self,
        resource_type: Union[SASResourceType, str],
        resource: str,
        validity: Tuple[datetime, Expiry],
        permissions: Iterable[Union[SASPermission, str]],
        storage_account_name: str,
    ) -> str:
        """
        Build a user delegation SAS query string.

        Raises:
            DelegationKeyFetchError: If the delegation key cannot be obtained
        """
        start, expiry = validity
        key = self.get_user_delegation_key(start, expiry)
        return build_token_with_key(
            resource_type, resource, validity, permissions, storage_account_name, key
        )

    def get_user_delegation_key(self, start: datetime, expiry: Expiry) -> UserDelegationKey:
        """
        Request a user delegation key valid over ``start``..``expiry``.

        Raises:
            DelegationKeyFetchError: On transport error, non-200 status or bad XML
        """
        request = SignableRequest(
            method="POST",
            url=f"{self.api_url}/",
            body=key_info_body(start, expiry),
            params=[("restype", "service"), ("comp", "userdelegationkey")],
        )
        request = self.auth_strategy.authorize(request)

        try:
            response = self.http_client.request(
                request.method,
                request.url,
                params=request.params,
                headers=request.effective_headers(),
                content=request.body,
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch user delegation key. Reason: {e}")
            raise DelegationKeyFetchError(f"User delegation key request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                f"Failed to fetch user delegation key. Reason: "
                f"{response.status_code}: {response.text}"
            )
            raise DelegationKeyFetchError(
                f"Get User Delegation Key returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        return UserDelegationKey.from_xml(response.content)
