"""
Standard headers shared by every authorization scheme.

Author: BlobAuth Team
Date: 2026-10-18
"""

from datetime import datetime, timezone
from typing import Optional

from blobauth.auth.request import SignableRequest

# Storage REST API version sent on every signed request. Independent from the
# SAS ``sv`` version.
API_VERSION = "2023-01-03"

RFC1123_FORMAT = "%a, %d %b %Y %H:%M:%S GMT"


def format_date(date: datetime) -> str:
    """
    Format a datetime for the x-ms-date header.

    Naive datetimes are taken as UTC; aware ones are converted to UTC.

    Args:
        date: Datetime to format

    Returns:
        RFC1123 date, e.g. ``Fri, 01 Jan 2021 00:00:00 GMT``
    """
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date.astimezone(timezone.utc).strftime(RFC1123_FORMAT)


def put_standard_headers(
    request: SignableRequest,
    content_type: Optional[str],
    date: datetime,
) -> SignableRequest:
    """
    Prepend version, date and (optionally) content-type headers.

    Resulting order: x-ms-version, x-ms-date, content-type, existing headers.
    """
    if content_type:
        request = request.prepend_header("content-type", content_type)

    return request.prepend_headers(
        [
            ("x-ms-version", API_VERSION),
            ("x-ms-date", format_date(date)),
        ]
    )
