"""Shared access signature (SAS) construction for Blob Storage."""

from blobauth.sas.shared import SASPermission, SASResourceType
from blobauth.sas.shared_access_signature import SharedAccessSignature
from blobauth.sas.user_delegation_sas import UserDelegationKey, UserDelegationSAS

__all__ = [
    "SASPermission",
    "SASResourceType",
    "SharedAccessSignature",
    "UserDelegationKey",
    "UserDelegationSAS",
]
