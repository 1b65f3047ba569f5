"""Formatting helpers shared by the service and user delegation SAS builders.

Reference: https://learn.microsoft.com/en-us/rest/api/storageservices/create-service-sas
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, Union

from blobauth.auth.exceptions import SigningInputError

SAS_VERSION = "2020-12-06"

ISO8601_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class SASPermission(str, Enum):
    """Blob SAS permission atoms and their letters."""

    READ = "r"
    ADD = "a"
    CREATE = "c"
    WRITE = "w"
    DELETE = "d"
    DELETE_VERSION = "x"
    PERMANENT_DELETE = "y"
    LIST = "l"
    TAGS = "t"
    FIND = "f"
    MOVE = "m"
    EXECUTE = "e"
    OWNERSHIP = "o"
    PERMISSIONS = "p"
    SET_IMMUTABILITY_POLICY = "i"


class SASResourceType(str, Enum):
    """Signed resource (sr) values."""

    BLOB = "b"
    BLOB_VERSION = "bv"
    BLOB_SNAPSHOT = "bs"
    CONTAINER = "c"
    DIRECTORY = "d"


# Letters listed here come first in this order; y, f and i follow.
PERMISSIONS_ORDER = "racwdxltmeop" + "yfi"

Expiry = Union[timedelta, int, float, datetime]


def sv() -> str:
    """Signed version."""
    return SAS_VERSION


def _to_utc_seconds(date_time: datetime) -> datetime:
    if date_time.tzinfo is None:
        date_time = date_time.replace(tzinfo=timezone.utc)
    return date_time.astimezone(timezone.utc).replace(microsecond=0)


def st(date_time: datetime) -> str:
    """Signed start, truncated to whole seconds."""
    return _to_utc_seconds(date_time).strftime(ISO8601_FORMAT)


def expiry_time(date_time: datetime, expiry: Expiry) -> datetime:
    """Absolute expiry from a start time and a duration or absolute datetime."""
    if isinstance(expiry, datetime):
        return _to_utc_seconds(expiry)
    if isinstance(expiry, timedelta):
        return _to_utc_seconds(date_time + expiry)
    if isinstance(expiry, (int, float)) and not isinstance(expiry, bool):
        return _to_utc_seconds(date_time + timedelta(seconds=expiry))
    raise SigningInputError(f"Invalid SAS expiry: {expiry!r}")


def se(date_time: datetime, expiry: Expiry) -> str:
    """Signed expiry, truncated to whole seconds."""
    return expiry_time(date_time, expiry).strftime(ISO8601_FORMAT)


def to_permission(value: Union[SASPermission, str]) -> SASPermission:
    """Accept an enum member or its name (``"read"``, ``"READ"``)."""
    if isinstance(value, SASPermission):
        return value
    if isinstance(value, str):
        try:
            return SASPermission[value.upper()]
        except KeyError:
            pass
    raise SigningInputError(f"Unknown SAS permission: {value!r}")


def to_resource_type(value: Union[SASResourceType, str]) -> SASResourceType:
    """Accept an enum member or its name (``"container"``, ``"BLOB"``)."""
    if isinstance(value, SASResourceType):
        return value
    if isinstance(value, str):
        try:
            return SASResourceType[value.upper()]
        except KeyError:
            pass
    raise SigningInputError(f"Unknown SAS resource type: {value!r}")


def sp(permissions: Iterable[Union[SASPermission, str]]) -> str:
    """Signed permissions in canonical order, duplicates collapsed."""
    letters = {to_permission(p).value for p in permissions}
    return "".join(sorted(letters, key=PERMISSIONS_ORDER.index))


def sr(resource_type: Union[SASResourceType, str]) -> str:
    """Signed resource letter(s)."""
    return to_resource_type(resource_type).value


def join_path(*parts: str) -> str:
    """Join path segments with single slashes, dropping empty segments."""
    segments = []
    for part in parts:
        segments.extend(s for s in part.split("/") if s)
    return "/".join(segments)


def canonicalized_resource(resource: str, storage_account_name: str) -> str:
    """``/blob/<account>/<container>[/<blob>]`` as used in the string-to-sign."""
    return "/" + join_path("blob", storage_account_name, resource)
