"""
Secret vault network configuration.

Settings for the vault backend, application/user identities and the
expense collection.

Dependencies: pydantic, pydantic_settings
System role: Vault boundary configuration
"""

from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class VaultSettings(BaseSettings):
    """Vault backend configuration (in-memory for dev, nilDB nodes for prod)."""

    model_config = SettingsConfigDict(
        env_prefix="VAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    backend: str = Field(
        default="memory",
        description="Vault backend: 'memory' for local dev, 'nildb' for the node network",
    )
    builder_private_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("VAULT_BUILDER_PRIVATE_KEY", "BUILDER_PRIVATE_KEY"),
        description="Hex secp256k1 private key of the application (builder)",
    )
    user_private_key: str | None = Field(
        default=None,
        description="Hex secp256k1 private key of the acting user; generated when unset",
    )
    root_token: str | None = Field(
        default=None,
        description="Root token issued to the builder by the auth service",
    )
    node_urls: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        validation_alias=AliasChoices("VAULT_NODE_URLS", "NILDB_NODES"),
        description="Comma-separated storage node base URLs",
    )
    collection_id: str | None = Field(
        default=None,
        description="Expense collection id; a fresh uuid4 is used when unset",
    )
    collection_name: str = Field(default="Expense Tracker Collection")
    builder_name: str = Field(default="Expense Tracker")
    token_ttl_seconds: int = Field(
        default=3600,
        description="Delegation token lifetime in seconds (default 1 hour)",
    )
    request_timeout: float = Field(default=30.0, description="Node HTTP timeout in seconds")
    init_attempts: int = Field(default=3, description="Start-up registration attempts")

    @field_validator("node_urls", mode="before")
    @classmethod
    def _split_node_urls(cls, value):
        if isinstance(value, str):
            return [url.strip() for url in value.split(",") if url.strip()]
        return value
