"""
Dependency injection container.

Factory functions for FastAPI dependencies. The ledger, vault client and
token issuer live in a process-wide ServiceCache built from settings;
tests swap any of them through `app.dependency_overrides`.

Dependencies: expense_vault.configs, expense_vault.boundary, expense_vault.core
System role: DI container for service injection
"""

import logging
import uuid

from fastapi import Depends

from expense_vault.application.services import ExpenseService
from expense_vault.boundary.auth import DelegationTokenIssuer, Keypair, VaultCommand
from expense_vault.boundary.vault import VaultClient, get_vault_client
from expense_vault.configs import Settings, get_settings
from expense_vault.core.exceptions import ConfigurationError
from expense_vault.core.ledger import IdentifierLedger
from expense_vault.core.ledger_store import JsonFileLedgerStore
from expense_vault.models.expense import expense_collection_schema

logger = logging.getLogger(__name__)


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self, settings: Settings | None = None):
        self._settings = settings
        self._builder_keypair = None
        self._user_keypair = None
        self._issuer = None
        self._vault_client = None
        self._ledger = None
        self._collection_id = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def builder_keypair(self) -> Keypair:
        """Get the application's long-lived keypair."""
        if self._builder_keypair is None:
            vault_settings = self.settings.vault
            if vault_settings.builder_private_key:
                self._builder_keypair = Keypair.from_hex(vault_settings.builder_private_key)
            elif vault_settings.backend.lower() == "memory":
                logger.warning("BUILDER_PRIVATE_KEY not set, using an ephemeral builder key")
                self._builder_keypair = Keypair.generate()
            else:
                raise ConfigurationError("Please set BUILDER_PRIVATE_KEY in your .env file")
        return self._builder_keypair

    @property
    def user_keypair(self) -> Keypair:
        """Get the acting user's keypair (generated per process unless configured)."""
        if self._user_keypair is None:
            user_key = self.settings.vault.user_private_key
            self._user_keypair = Keypair.from_hex(user_key) if user_key else Keypair.generate()
        return self._user_keypair

    @property
    def issuer(self) -> DelegationTokenIssuer:
        """Get cached delegation token issuer."""
        if self._issuer is None:
            vault_settings = self.settings.vault
            self._issuer = DelegationTokenIssuer(
                builder_keypair=self.builder_keypair,
                audience_did=self.user_keypair.to_did(),
                root_token=vault_settings.root_token,
                ttl_seconds=vault_settings.token_ttl_seconds,
            )
        return self._issuer

    @property
    def vault_client(self) -> VaultClient:
        """Get cached vault client."""
        if self._vault_client is None:
            self._vault_client = get_vault_client(self.settings.vault)
        return self._vault_client

    @property
    def ledger(self) -> IdentifierLedger:
        """Get cached identifier ledger."""
        if self._ledger is None:
            ledger_settings = self.settings.ledger
            self._ledger = IdentifierLedger(
                JsonFileLedgerStore(ledger_settings.path),
                policy=ledger_settings.persist_policy,
            )
        return self._ledger

    @property
    def collection_id(self) -> str:
        """Get the expense collection id (fresh per process unless configured)."""
        if self._collection_id is None:
            self._collection_id = self.settings.vault.collection_id or str(uuid.uuid4())
        return self._collection_id

    async def startup(self) -> None:
        """Register with the vault, ensure the collection and load the ledger."""
        vault_settings = self.settings.vault
        builder_did = self.builder_keypair.to_did()
        await self.vault_client.initialize(
            self.issuer.mint(VaultCommand.REGISTER, audience=builder_did),
            builder_did=builder_did,
            builder_name=vault_settings.builder_name,
            collection=expense_collection_schema(self.collection_id, vault_settings.collection_name),
        )
        await self.ledger.load()
        logger.info(
            "Vault initialization complete",
            extra={"collection": self.collection_id, "tracked_records": len(self.ledger)},
        )

    async def shutdown(self) -> None:
        """Close network resources and drop cached instances."""
        if self._vault_client is not None:
            await self._vault_client.close()
        self.clear()

    def clear(self) -> None:
        """Clear all cached instances."""
        self._settings = None
        self._builder_keypair = None
        self._user_keypair = None
        self._issuer = None
        self._vault_client = None
        self._ledger = None
        self._collection_id = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_ledger() -> IdentifierLedger:
    """Get the process-wide identifier ledger."""
    return get_service_cache().ledger


def get_vault_client_dependency() -> VaultClient:
    """Get the process-wide vault client."""
    return get_service_cache().vault_client


def get_token_issuer() -> DelegationTokenIssuer:
    """Get the process-wide delegation token issuer."""
    return get_service_cache().issuer


def get_collection_id() -> str:
    """Get the expense collection id."""
    return get_service_cache().collection_id


def get_expense_service(
    vault: VaultClient = Depends(get_vault_client_dependency),
    issuer: DelegationTokenIssuer = Depends(get_token_issuer),
    ledger: IdentifierLedger = Depends(get_ledger),
    collection_id: str = Depends(get_collection_id),
) -> ExpenseService:
    """
    Get expense service instance.

    Args:
        vault: Vault client (injected via Depends)
        issuer: Delegation token issuer (injected via Depends)
        ledger: Identifier ledger (injected via Depends)
        collection_id: Expense collection id (injected via Depends)

    Returns:
        ExpenseService: Expense service instance
    """
    return ExpenseService(vault=vault, issuer=issuer, ledger=ledger, collection_id=collection_id)
