"""
SharedKey request signing for Azure Blob Storage.

Builds the canonical string of a request and signs it with the storage
account key according to the 2015-04-05+ SharedKey scheme.

Reference: https://docs.microsoft.com/en-us/rest/api/storageservices/authorize-with-shared-key

Author: BlobAuth Team
Date: 2026-10-18
"""

import base64
import hashlib
import hmac
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from blobauth.auth.request import SignableRequest
from blobauth.auth.utils import put_standard_headers

logger = logging.getLogger(__name__)

# Content headers in canonical order, between the verb and the x-ms-* block.
# Content-Length is handled separately because it comes from the body.
_CONTENT_HEADERS_BEFORE_LENGTH = ("content-encoding", "content-language")
_CONTENT_HEADERS_AFTER_LENGTH = ("content-md5", "content-type")
_CONDITIONAL_HEADERS = (
    "if-modified-since",
    "if-match",
    "if-none-match",
    "if-unmodified-since",
    "range",
)


def sign(
    request: SignableRequest,
    account_name: str,
    account_key: bytes,
    content_type: Optional[str] = None,
    date: Optional[datetime] = None,
) -> SignableRequest:
    """
    Sign a request with SharedKey.

    Adds x-ms-version, x-ms-date and content-type headers, then prepends
    ``Authorization: SharedKey <account>:<signature>``.

    Args:
        request: Request to sign
        account_name: Storage account name
        account_key: Decoded account key bytes
        content_type: Optional content type to add to the request
        date: Signing time, defaults to now (UTC)

    Returns:
        Decorated copy of the request
    """
    if date is None:
        date = datetime.now(timezone.utc)

    request = put_standard_headers(request, content_type, date)

    canonical_string = build_canonical_string(request, account_name)
    signature = compute_signature(canonical_string, account_key)

    logger.debug(f"Signed {request.method.upper()} {request.path} for account {account_name}")

    return request.prepend_header(
        "Authorization", f"SharedKey {account_name}:{signature}"
    )


def build_canonical_string(request: SignableRequest, account_name: str) -> str:
    """
    Build canonical string for SharedKey signature computation.

    Format:
        VERB\n
        Content-Encoding\n
        Content-Language\n
        Content-Length\n
        Content-MD5\n
        Content-Type\n
        Date\n
        If-Modified-Since\n
        If-Match\n
        If-None-Match\n
        If-Unmodified-Since\n
        Range\n
        CanonicalizedHeaders\n
        CanonicalizedResource
    """
    parts = [request.method.upper()]
    parts.extend(_header(request, name) for name in _CONTENT_HEADERS_BEFORE_LENGTH)
    parts.append(_get_content_length(request))
    parts.extend(_header(request, name) for name in _CONTENT_HEADERS_AFTER_LENGTH)
    parts.append("")  # Date, carried by x-ms-date
    parts.extend(_header(request, name) for name in _CONDITIONAL_HEADERS)

    parts.append(_build_canonicalized_headers(request.headers))
    parts.append(_build_canonicalized_resource(request, account_name))

    return "\n".join(parts)


def _header(request: SignableRequest, name: str) -> str:
    return request.get_header(name, "") or ""


def _get_content_length(request: SignableRequest) -> str:
    """
    Get Content-Length for the canonical string.

    The body length wins over any header. Zero is represented as empty string.
    """
    if request.body:
        return str(len(request.body))

    content_length = request.get_header("content-length", "")
    if content_length == "0":
        return ""
    return content_length


def _build_canonicalized_headers(headers: List[Tuple[str, str]]) -> str:
    """
    Build CanonicalizedHeaders string.

    Rules:
    1. Include all headers starting with "x-ms-"
    2. Lower-case names, first (most recently prepended) value wins
    3. Sort headers by name
    4. Unfold and trim values
    """
    ms_headers: Dict[str, str] = {}
    for name, value in headers:
        name = name.lower()
        if name.startswith("x-ms-") and name not in ms_headers:
            ms_headers[name] = value

    lines = []
    for name, value in sorted(ms_headers.items()):
        value = " ".join(str(value).split())
        lines.append(f"{name}:{value}")

    return "\n".join(lines)


def _build_canonicalized_resource(request: SignableRequest, account_name: str) -> str:
    """
    Build CanonicalizedResource string.

    Format:
        /account-name/resource-path
        param1:value1
        param2:value2
    """
    path = request.path or "/"
    resource = f"/{account_name}{path}"

    params = _collect_query_params(request.query_items())
    for name, value in sorted(params.items()):
        resource += f"\n{name}:{value}"

    return resource


def _collect_query_params(items: List[Tuple[str, str]]) -> Dict[str, str]:
    """Lower-case parameter names and comma-join repeated values."""
    params: Dict[str, List[str]] = {}
    for name, value in items:
        params.setdefault(name.lower(), []).append(value)
    return {name: ",".join(values) for name, values in params.items()}


def compute_signature(canonical_string: str, account_key: bytes) -> str:
    """
    Compute HMAC-SHA256 signature.

    Signature = Base64(HMAC-SHA256(UTF8(StringToSign), AccountKey))

    Args:
        canonical_string: Canonical string to sign
        account_key: Decoded account key bytes

    Returns:
        Base64-encoded signature
    """
    signature_bytes = hmac.new(
        account_key,
        canonical_string.encode("utf-8"),
        hashlib.sha256,
    ).digest()

    return base64.b64encode(signature_bytes).decode("utf-8")


def parse_authorization_header(auth_header: str) -> Tuple[str, str]:
    """
    Parse SharedKey Authorization header.

    Expected format: "SharedKey account:signature"

    Returns:
        Tuple of (account_name, signature)

    Raises:
        ValueError: If header is malformed
    """
    parts = auth_header.strip().split(maxsplit=1)

    if len(parts) != 2 or parts[0].lower() != "sharedkey":
        raise ValueError("Authorization header must be in format: SharedKey account:signature")

    account_name, sep, signature = parts[1].partition(":")
    if not sep or not account_name or not signature:
        raise ValueError("Account name and signature cannot be empty")

    return account_name, signature
