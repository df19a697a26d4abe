"""
Vault client interface.

Operations the application needs from a secret-vault network: owned-record
creation with an ACL, read/update/delete by document id, and ACL grants.

Dependencies: None (interface only)
System role: Contract between the expense service and any vault backend
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class AccessControl:
    """Capabilities granted to one identity on a document."""

    grantee: str
    read: bool = True
    write: bool = False
    execute: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class VaultClient(ABC):
    """Async client for a secret-vault network, acting as the user identity."""

    @abstractmethod
    async def initialize(
        self,
        token: str,
        builder_did: str,
        builder_name: str,
        collection: dict[str, Any],
    ) -> None:
        """Register the application (builder) and ensure the collection exists."""

    @abstractmethod
    async def create_data(
        self,
        token: str,
        owner: str,
        collection: str,
        data: list[dict[str, Any]],
        acl: AccessControl,
    ) -> dict[str, Any]:
        """Store user-owned records, granting `acl` to its grantee."""

    @abstractmethod
    async def read_data(self, token: str, collection: str, document: str) -> dict[str, Any]:
        """Return the stored record for a document id."""

    @abstractmethod
    async def update_data(
        self,
        token: str,
        collection: str,
        document: str,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        """Apply field changes to a stored record."""

    @abstractmethod
    async def delete_data(self, token: str, collection: str, document: str) -> dict[str, Any]:
        """Delete a stored record."""

    @abstractmethod
    async def grant_access(
        self,
        token: str,
        collection: str,
        document: str,
        acl: AccessControl,
    ) -> dict[str, Any]:
        """Grant capabilities on a document."""

    @abstractmethod
    async def revoke_access(
        self,
        token: str,
        collection: str,
        document: str,
        grantee: str,
    ) -> dict[str, Any]:
        """Revoke every capability of `grantee` on a document."""

    async def close(self) -> None:
        """Release network resources."""
