"""
Shared test fixtures and configuration for entire test suite.

Provides: keypairs, token issuer, in-memory vault, in-memory ledger, expense
service and a FastAPI TestClient wired to them through dependency overrides.
Dependencies: pytest, fastapi
System role: Test infrastructure and fixture management
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from expense_vault.api.deps.dependencies import (
    get_collection_id,
    get_ledger,
    get_token_issuer,
    get_vault_client_dependency,
)
from expense_vault.api.main import create_app
from expense_vault.application.services import ExpenseService
from expense_vault.boundary.auth import DelegationTokenIssuer, Keypair, VaultCommand
from expense_vault.boundary.vault import InMemoryVaultClient
from expense_vault.core.ledger import IdentifierLedger
from expense_vault.core.ledger_store import InMemoryLedgerStore
from expense_vault.models.expense import expense_collection_schema


@pytest.fixture
def builder_keypair() -> Keypair:
    """Application (builder) keypair."""
    return Keypair.generate()


@pytest.fixture
def user_keypair() -> Keypair:
    """Acting user keypair."""
    return Keypair.generate()


@pytest.fixture
def issuer(builder_keypair: Keypair, user_keypair: Keypair) -> DelegationTokenIssuer:
    """Delegation token issuer from builder to user."""
    return DelegationTokenIssuer(builder_keypair, audience_did=user_keypair.to_did())


@pytest.fixture
def collection_id() -> str:
    """Fresh expense collection id."""
    return str(uuid.uuid4())


@pytest.fixture
async def memory_vault(
    issuer: DelegationTokenIssuer, builder_keypair: Keypair, collection_id: str
) -> InMemoryVaultClient:
    """In-memory vault with the builder registered and the collection created."""
    vault = InMemoryVaultClient()
    builder_did = builder_keypair.to_did()
    await vault.initialize(
        issuer.mint(VaultCommand.REGISTER, audience=builder_did),
        builder_did=builder_did,
        builder_name="Expense Tracker",
        collection=expense_collection_schema(collection_id, "Expense Tracker Collection"),
    )
    return vault


@pytest.fixture
def ledger_store() -> InMemoryLedgerStore:
    """Ledger store that keeps the last persisted sequence in memory."""
    return InMemoryLedgerStore()


@pytest.fixture
def ledger(ledger_store: InMemoryLedgerStore) -> IdentifierLedger:
    """Empty identifier ledger on an in-memory store."""
    return IdentifierLedger(ledger_store)


@pytest.fixture
def expense_service(
    memory_vault: InMemoryVaultClient,
    issuer: DelegationTokenIssuer,
    ledger: IdentifierLedger,
    collection_id: str,
) -> ExpenseService:
    """ExpenseService over the in-memory vault."""
    return ExpenseService(
        vault=memory_vault, issuer=issuer, ledger=ledger, collection_id=collection_id
    )


@pytest.fixture
def client(
    memory_vault: InMemoryVaultClient,
    issuer: DelegationTokenIssuer,
    ledger: IdentifierLedger,
    collection_id: str,
) -> TestClient:
    """TestClient whose vault, issuer, ledger and collection come from fixtures."""
    app = create_app()
    app.dependency_overrides[get_vault_client_dependency] = lambda: memory_vault
    app.dependency_overrides[get_token_issuer] = lambda: issuer
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_collection_id] = lambda: collection_id
    return TestClient(app)


@pytest.fixture
def valid_expense() -> dict:
    """A valid expense payload."""
    return {"amount": 42.5, "cat": "Food", "desc": "Team lunch"}
