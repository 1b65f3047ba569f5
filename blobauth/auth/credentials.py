"""
Storage credential variants.

A configuration resolves to exactly one of AccountKey, ServicePrincipal or
ManagedIdentity. Dispatchers branch on the concrete class and treat anything
else as a configuration error.

Author: BlobAuth Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, Union, runtime_checkable


@runtime_checkable
class IdentityAssertionSource(Protocol):
    """Supplies the federated identity assertion (usually a JWT)."""

    def read(self) -> str:
        ...


@dataclass(frozen=True)
class FileAssertionSource:
    """Reads the assertion from a file on every call, since it may be rotated."""

    path: Path

    def read(self) -> str:
        return Path(self.path).read_text(encoding="utf-8")


@dataclass(frozen=True)
class StaticAssertionSource:
    """Fixed assertion value."""

    assertion: str = field(repr=False)

    def read(self) -> str:
        return self.assertion


@dataclass(frozen=True)
class AccountKey:
    """Storage account name plus decoded account key bytes."""

    name: str
    key: bytes = field(repr=False)


@dataclass(frozen=True)
class ServicePrincipal:
    """OAuth2 client-credentials identity using a client secret."""

    client_id: str
    client_secret: str = field(repr=False)
    tenant_id: str


@dataclass(frozen=True)
class ManagedIdentity:
    """Workload identity using a federated client assertion."""

    client_id: str
    tenant_id: str
    identity_token_source: IdentityAssertionSource


Credential = Union[AccountKey, ServicePrincipal, ManagedIdentity]


def credential_kind(credential: Credential) -> str:
    """Short name of a credential variant, for logs and the CLI."""
    if isinstance(credential, AccountKey):
        return "account_key"
    if isinstance(credential, ServicePrincipal):
        return "service_principal"
    if isinstance(credential, ManagedIdentity):
        return "managed_identity"
    raise TypeError(f"Unknown credential type: {type(credential).__name__}")
