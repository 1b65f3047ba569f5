"""
In-process bearer token cache.

Entries are keyed by a digest of (client_id, tenant_id) so several identities
can be active in one process. The cache is optimistic: there is no lock, and
concurrent misses may each fetch a token. Entries are whole immutable records
and a dict assignment replaces them atomically.

Author: BlobAuth Team
Date: 2026-10-18
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BearerTokenCacheEntry:
    """Cached token and the epoch second after which it must not be used."""

    token: str = field(repr=False)
    expires_at: int

    def is_valid(self, now: int) -> bool:
        return now < self.expires_at


def cache_key(client_id: str, tenant_id: str) -> str:
    """Stable key for an identity."""
    return hashlib.sha256(f"{tenant_id}\x00{client_id}".encode("utf-8")).hexdigest()


class BearerTokenCache:
    """Bearer tokens per identity, valid for the lifetime of the process."""

    def __init__(self):
        self._entries: Dict[str, BearerTokenCacheEntry] = {}

    def get(self, key: str, now: int) -> Optional[str]:
        """Return the cached token for ``key`` if it has not expired at ``now``."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_valid(now):
            logger.debug(f"Cached bearer token expired at {entry.expires_at}, now {now}")
            return None
        return entry.token

    def put(self, key: str, token: str, expires_at: int) -> BearerTokenCacheEntry:
        entry = BearerTokenCacheEntry(token=token, expires_at=expires_at)
        self._entries[key] = entry
        return entry

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
