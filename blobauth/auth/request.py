"""Outgoing request representation used by the signing layer."""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlparse


Header = Tuple[str, str]


@dataclass(frozen=True)
class SignableRequest:
    """HTTP request awaiting authorization headers.

    Headers are an ordered list where duplicates are allowed. Lookup returns
    the first match, so a prepended header shadows older ones with the same
    name. Decoration never removes headers; it returns a new request.
    """

    method: str
    url: str
    body: bytes = b""
    headers: List[Header] = field(default_factory=list)
    params: List[Tuple[str, str]] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.body, str):
            object.__setattr__(self, "body", self.body.encode("utf-8"))
        object.__setattr__(self, "headers", list(self.headers))
        object.__setattr__(
            self, "params", [(str(k), str(v)) for k, v in self.params]
        )

    def prepend_header(self, name: str, value: str) -> "SignableRequest":
        return self.prepend_headers([(name, value)])

    def prepend_headers(self, headers: List[Header]) -> "SignableRequest":
        """Return a copy with ``headers`` placed in front, keeping their order."""
        return replace(self, headers=list(headers) + self.headers)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        name = name.lower()
        for header_name, value in self.headers:
            if header_name.lower() == name:
                return value
        return default

    def effective_headers(self) -> List[Header]:
        """Headers as the transport should send them: shadowed duplicates dropped."""
        seen = set()
        result = []
        for header_name, value in self.headers:
            key = header_name.lower()
            if key in seen:
                continue
            seen.add(key)
            result.append((header_name, value))
        return result

    @property
    def path(self) -> str:
        return urlparse(self.url).path

    def query_items(self) -> List[Tuple[str, str]]:
        """Query parameters from the URL followed by the explicit ``params``."""
        query = urlparse(self.url).query
        items = parse_qsl(query, keep_blank_values=True) if query else []
        return items + self.params


def make_request(
    method: str,
    url: str,
    body: Union[bytes, str] = b"",
    headers: Optional[List[Header]] = None,
    params: Optional[List[Tuple[str, str]]] = None,
) -> SignableRequest:
    return SignableRequest(
        method=method.upper(),
        url=url,
        body=body,
        headers=headers or [],
        params=params or [],
    )
