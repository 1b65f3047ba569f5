"""Service SAS signed with the storage account key.

Reference: https://learn.microsoft.com/en-us/rest/api/storageservices/create-service-sas
"""

from datetime import datetime
from typing import Iterable, Tuple, Union
from urllib.parse import urlencode

from blobauth.auth.sharedkey import compute_signature
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


def build_token(
    resource_type: Union[SASResourceType, str],
    resource: str,
    validity: Tuple[datetime, Expiry],
    permissions: Iterable[Union[SASPermission, str]],
    storage_account_name: str,
    storage_account_key: bytes,
) -> str:
    """
    Build a service SAS query string.

    Args:
        resource_type: Signed resource type
        resource: ``container[/blob path]``
        validity: ``(start, expiry)``; expiry is a duration or a datetime
        permissions: Permission atoms, any order
        storage_account_name: Storage account name
        storage_account_key: Decoded account key bytes

    Returns:
        URL-encoded ``sv, st, se, sr, sp, sig`` query string
    """
    start, expiry = validity
    permissions = list(permissions)

    return urlencode(
        [
            ("sv", sv()),
            ("st", st(start)),
            ("se", se(start, expiry)),
            ("sr", sr(resource_type)),
            ("sp", sp(permissions)),
            (
                "sig",
                signature(
                    resource_type,
                    resource,
                    (start, expiry),
                    permissions,
                    storage_account_name,
                    storage_account_key,
                ),
            ),
        ]
    )


def string_to_sign(
    resource_type: Union[SASResourceType, str],
    resource: str,
    validity: Tuple[datetime, Expiry],
    permissions: Iterable[Union[SASPermission, str]],
    storage_account_name: str,
) -> str:
    start, expiry = validity
    return "\n".join(
        [
            sp(permissions),
            st(start),
            se(start, expiry),
            canonicalized_resource(resource, storage_account_name),
            "",  # signed identifier
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


def signature(
    resource_type: Union[SASResourceType, str],
    resource: str,
    validity: Tuple[datetime, Expiry],
    permissions: Iterable[Union[SASPermission, str]],
    storage_account_name: str,
    storage_account_key: bytes,
) -> str:
    return compute_signature(
        string_to_sign(resource_type, resource, validity, permissions, storage_account_name),
        storage_account_key,
    )
