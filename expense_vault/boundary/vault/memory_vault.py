"""
In-process vault for local development.

Keeps records and ACLs in memory but enforces the same token rules as the
node network: valid builder signature, unexpired, and a command matching the
operation. Data is lost on restart, which also exercises ledger pruning.

Dependencies: PyJWT, expense_vault.boundary.auth
System role: Development vault backend (VAULT_BACKEND=memory)
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

import jwt

from expense_vault.boundary.auth.delegation import TOKEN_ALGORITHM, VaultCommand
from expense_vault.boundary.auth.keypair import public_key_from_did
from expense_vault.boundary.vault.vault_client import AccessControl, VaultClient
from expense_vault.core.exceptions import (
    PermissionDeniedError,
    RecordNotFoundError,
    VaultOperationError,
)

logger = logging.getLogger(__name__)


@dataclass
class _StoredDocument:
    owner: str
    data: dict[str, Any]
    acl: dict[str, AccessControl] = field(default_factory=dict)


class InMemoryVaultClient(VaultClient):
    """Dictionary-backed vault honouring delegation tokens and ACLs."""

    def __init__(self) -> None:
        self._builder_did: str | None = None
        self._builders: dict[str, str] = {}
        self._collections: dict[str, dict[str, _StoredDocument]] = {}
        # Owners that revoked the application; writes on their behalf are refused
        self._revoked_owners: set[str] = set()

    async def initialize(
        self,
        token: str,
        builder_did: str,
        builder_name: str,
        collection: dict[str, Any],
    ) -> None:
        self._builder_did = builder_did
        self._builders.setdefault(builder_did, builder_name)
        if collection["_id"] in self._collections:
            logger.info("Collection may already exist", extra={"collection": collection["_id"]})
            return
        self._collections[collection["_id"]] = {}
        logger.info(
            "In-memory collection created",
            extra={"collection": collection["_id"], "builder": builder_name},
        )

    def _authorize(
        self,
        token: str,
        command: VaultCommand,
        document: str | None = None,
        audience: str | None = None,
    ) -> str:
        """
        Verify the token and return the acting identity (its audience).

        When `audience` is given the token must be addressed to it.
        """
        if self._builder_did is None:
            raise PermissionDeniedError(
                "permission denied: builder not registered",
                operation=command.value,
                document_id=document,
            )
        try:
            claims = jwt.decode(
                token,
                key=public_key_from_did(self._builder_did),
                algorithms=[TOKEN_ALGORITHM],
                issuer=self._builder_did,
                audience=audience,
                options={"verify_aud": audience is not None},
            )
        except jwt.InvalidTokenError as e:
            raise PermissionDeniedError(
                f"permission denied: {e}", operation=command.value, document_id=document
            ) from e
        if claims.get("cmd") != command.path:
            raise PermissionDeniedError(
                f"permission denied: token command {claims.get('cmd')} does not allow {command.path}",
                operation=command.value,
                document_id=document,
            )
        return claims["aud"]

    def _collection(self, collection: str, command: VaultCommand) -> dict[str, _StoredDocument]:
        try:
            return self._collections[collection]
        except KeyError:
            raise VaultOperationError(
                f"Collection not found: {collection}", operation=command.value
            ) from None

    def _document(
        self, collection: str, document: str, command: VaultCommand
    ) -> _StoredDocument:
        docs = self._collections.get(collection, {})
        stored = docs.get(document)
        if stored is None:
            raise RecordNotFoundError(
                f"Document not found: {document}", operation=command.value, document_id=document
            )
        return stored

    def _require_write_access(
        self, owner: str, command: VaultCommand, document: str | None = None
    ) -> None:
        if owner in self._revoked_owners:
            raise PermissionDeniedError(
                "permission denied: application write access was revoked by the owner",
                operation=command.value,
                document_id=document,
            )

    @staticmethod
    def _require_owner(stored: _StoredDocument, actor: str, command: VaultCommand, document: str) -> None:
        if stored.owner != actor:
            raise PermissionDeniedError(
                "permission denied: only the owner may perform this operation",
                operation=command.value,
                document_id=document,
            )

    async def create_data(
        self,
        token: str,
        owner: str,
        collection: str,
        data: list[dict[str, Any]],
        acl: AccessControl,
    ) -> dict[str, Any]:
        self._authorize(token, VaultCommand.CREATE, audience=owner)
        self._require_write_access(owner, VaultCommand.CREATE)
        docs = self._collection(collection, VaultCommand.CREATE)

        created = []
        for record in data:
            doc_id = record.get("_id")
            if not doc_id:
                raise VaultOperationError("Record is missing _id", operation=VaultCommand.CREATE.value)
            if doc_id in docs:
                raise VaultOperationError(
                    f"duplicate key: {doc_id}", operation=VaultCommand.CREATE.value, document_id=doc_id
                )
            docs[doc_id] = _StoredDocument(
                owner=owner, data=copy.deepcopy(record), acl={acl.grantee: acl}
            )
            created.append(doc_id)
        return {"memory": {"data": {"created": created, "errors": []}}}

    async def read_data(self, token: str, collection: str, document: str) -> dict[str, Any]:
        actor = self._authorize(token, VaultCommand.READ, document)
        stored = self._document(collection, document, VaultCommand.READ)
        grant = stored.acl.get(actor)
        if stored.owner != actor and not (grant and grant.read):
            raise PermissionDeniedError(
                "permission denied: no read access", operation=VaultCommand.READ.value, document_id=document
            )
        return copy.deepcopy(stored.data)

    async def update_data(
        self,
        token: str,
        collection: str,
        document: str,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        actor = self._authorize(token, VaultCommand.UPDATE, document)
        stored = self._document(collection, document, VaultCommand.UPDATE)
        self._require_owner(stored, actor, VaultCommand.UPDATE, document)
        self._require_write_access(stored.owner, VaultCommand.UPDATE, document)
        stored.data.update(copy.deepcopy(changes))
        return {"memory": {"data": {"matched": 1, "modified": 1}}}

    async def delete_data(self, token: str, collection: str, document: str) -> dict[str, Any]:
        actor = self._authorize(token, VaultCommand.DELETE, document)
        stored = self._document(collection, document, VaultCommand.DELETE)
        self._require_owner(stored, actor, VaultCommand.DELETE, document)
        del self._collections[collection][document]
        return {"memory": {"data": {"deletedCount": 1}}}

    async def grant_access(
        self,
        token: str,
        collection: str,
        document: str,
        acl: AccessControl,
    ) -> dict[str, Any]:
        actor = self._authorize(token, VaultCommand.GRANT, document)
        stored = self._document(collection, document, VaultCommand.GRANT)
        self._require_owner(stored, actor, VaultCommand.GRANT, document)
        stored.acl[acl.grantee] = acl
        if acl.grantee == self._builder_did:
            self._revoked_owners.discard(stored.owner)
        return {"memory": {"data": {"acl": [a.to_dict() for a in stored.acl.values()]}}}

    async def revoke_access(
        self,
        token: str,
        collection: str,
        document: str,
        grantee: str,
    ) -> dict[str, Any]:
        actor = self._authorize(token, VaultCommand.REVOKE, document)
        stored = self._document(collection, document, VaultCommand.REVOKE)
        self._require_owner(stored, actor, VaultCommand.REVOKE, document)
        stored.acl.pop(grantee, None)
        if grantee == self._builder_did:
            self._revoked_owners.add(stored.owner)
        return {"memory": {"data": {"acl": [a.to_dict() for a in stored.acl.values()]}}}
