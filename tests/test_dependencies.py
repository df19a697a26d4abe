"""
Test suite for dependency injection container and settings.

Tests ServiceCache wiring, the vault client factory and environment-driven
configuration.

System role: Verification of DI container
"""

from unittest.mock import AsyncMock

import pytest

from expense_vault.api.deps import get_expense_service
from expense_vault.api.deps.dependencies import ServiceCache
from expense_vault.application.services import ExpenseService
from expense_vault.boundary.auth import Keypair
from expense_vault.boundary.vault import InMemoryVaultClient, NilDBVaultClient, get_vault_client
from expense_vault.configs import Settings
from expense_vault.configs.vault import VaultSettings
from expense_vault.core.exceptions import ConfigurationError
from expense_vault.core.ledger import LedgerPersistPolicy
from expense_vault.core.ledger_store import JsonFileLedgerStore

BUILDER_KEY = "22" * 32


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host environment variables out of settings under test."""
    for name in (
        "VAULT_BACKEND",
        "BUILDER_PRIVATE_KEY",
        "VAULT_BUILDER_PRIVATE_KEY",
        "VAULT_USER_PRIVATE_KEY",
        "VAULT_COLLECTION_ID",
        "VAULT_NODE_URLS",
        "NILDB_NODES",
        "LEDGER_PATH",
        "LEDGER_PERSIST_POLICY",
    ):
        monkeypatch.delenv(name, raising=False)


class TestVaultSettings:
    """Test suite for VaultSettings environment parsing."""

    def test_defaults_to_memory_backend(self) -> None:
        settings = VaultSettings(_env_file=None)
        assert settings.backend == "memory"
        assert settings.node_urls == []
        assert settings.token_ttl_seconds == 3600

    def test_node_urls_are_split_on_commas(self, monkeypatch) -> None:
        monkeypatch.setenv("NILDB_NODES", "https://a.test, https://b.test,")
        settings = VaultSettings(_env_file=None)
        assert settings.node_urls == ["https://a.test", "https://b.test"]

    def test_unprefixed_builder_key_is_accepted(self, monkeypatch) -> None:
        monkeypatch.setenv("BUILDER_PRIVATE_KEY", BUILDER_KEY)
        assert VaultSettings(_env_file=None).builder_private_key == BUILDER_KEY

    def test_only_consumed_vault_settings_are_declared(self) -> None:
        fields = set(VaultSettings.model_fields)
        assert "chain_url" not in fields
        assert "auth_url" not in fields
        assert {"root_token", "node_urls", "builder_private_key"} <= fields

    def test_ledger_settings_read_policy(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("LEDGER_PATH", str(tmp_path / "ids.json"))
        monkeypatch.setenv("LEDGER_PERSIST_POLICY", "fail_closed")

        settings = Settings(_env_file=None)

        assert settings.ledger.path == tmp_path / "ids.json"
        assert settings.ledger.persist_policy is LedgerPersistPolicy.FAIL_CLOSED


class TestGetVaultClient:
    """Test suite for vault client factory."""

    def test_memory_backend(self) -> None:
        client = get_vault_client(VaultSettings(_env_file=None, backend="memory"))
        assert isinstance(client, InMemoryVaultClient)

    def test_nildb_backend(self) -> None:
        settings = VaultSettings(_env_file=None, backend="nildb", node_urls=["https://a.test"])
        assert isinstance(get_vault_client(settings), NilDBVaultClient)

    def test_nildb_without_nodes_is_a_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            get_vault_client(VaultSettings(_env_file=None, backend="nildb"))

    def test_unknown_backend_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid VAULT_BACKEND"):
            get_vault_client(VaultSettings(_env_file=None, backend="postgres"))


class TestServiceCache:
    """Test suite for ServiceCache."""

    def make_cache(self, tmp_path, **vault) -> ServiceCache:
        settings = Settings(
            _env_file=None,
            vault=VaultSettings(_env_file=None, **vault),
        )
        settings.ledger.path = tmp_path / "expense-ids.json"
        return ServiceCache(settings)

    def test_builder_key_comes_from_settings(self, tmp_path) -> None:
        cache = self.make_cache(tmp_path, builder_private_key=BUILDER_KEY)
        assert cache.builder_keypair.to_did() == Keypair.from_hex(BUILDER_KEY).to_did()

    def test_memory_backend_generates_ephemeral_builder_key(self, tmp_path) -> None:
        cache = self.make_cache(tmp_path)
        assert cache.builder_keypair.to_did().startswith("did:nil:")

    def test_nildb_backend_requires_builder_key(self, tmp_path) -> None:
        cache = self.make_cache(tmp_path, backend="nildb", node_urls=["https://a.test"])
        with pytest.raises(ConfigurationError, match="BUILDER_PRIVATE_KEY"):
            cache.builder_keypair

    def test_issuer_targets_user_did(self, tmp_path) -> None:
        cache = self.make_cache(tmp_path, builder_private_key=BUILDER_KEY)
        assert cache.issuer.issuer_did == cache.builder_keypair.to_did()
        assert cache.issuer.audience_did == cache.user_keypair.to_did()

    def test_instances_are_cached(self, tmp_path) -> None:
        cache = self.make_cache(tmp_path)
        assert cache.vault_client is cache.vault_client
        assert cache.ledger is cache.ledger
        assert cache.collection_id == cache.collection_id

    def test_configured_collection_id_is_used(self, tmp_path) -> None:
        cache = self.make_cache(tmp_path, collection_id="fixed-collection")
        assert cache.collection_id == "fixed-collection"

    async def test_startup_initializes_vault_and_loads_ledger(self, tmp_path) -> None:
        # Arrange
        JsonFileLedgerStore(tmp_path / "expense-ids.json").write(["a", "b"])
        cache = self.make_cache(tmp_path)

        # Act
        await cache.startup()

        # Assert
        assert cache.ledger.ids == ["a", "b"]

    async def test_shutdown_closes_vault_and_clears(self, tmp_path) -> None:
        cache = self.make_cache(tmp_path)
        vault = AsyncMock()
        cache._vault_client = vault

        await cache.shutdown()

        vault.close.assert_awaited_once()
        assert cache._vault_client is None


def test_get_expense_service_should_build_service(memory_vault, issuer, ledger, collection_id):
    service = get_expense_service(
        vault=memory_vault, issuer=issuer, ledger=ledger, collection_id=collection_id
    )

    assert isinstance(service, ExpenseService)
    assert service.vault is memory_vault
    assert service.collection_id == collection_id
