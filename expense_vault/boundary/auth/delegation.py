"""
Delegation token issuance.

Mints short-lived, operation-scoped tokens signed with the application's
long-lived key and addressed to the acting user. One token is minted per
record per operation so every vault call is individually attributable.

Dependencies: PyJWT (ES256K via cryptography), expense_vault.boundary.auth.keypair
System role: Per-call authorization for vault operations
"""

import hashlib
import logging
import time
import uuid
from enum import Enum
from typing import Any

import jwt

from expense_vault.boundary.auth.keypair import Keypair, public_key_from_did
from expense_vault.observability.log_utils import token_fingerprint

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "ES256K"
DEFAULT_TOKEN_TTL_SECONDS = 3600


class VaultCommand(str, Enum):
    """Operation categories a delegation token can be bound to."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    GRANT = "grant"
    REVOKE = "revoke"
    REGISTER = "register"

    @property
    def path(self) -> str:
        """Command path carried in the token's `cmd` claim."""
        if self in (VaultCommand.GRANT, VaultCommand.REVOKE):
            return f"/nil/db/acl/{self.value}"
        if self is VaultCommand.REGISTER:
            return "/nil/db/builders/register"
        return f"/nil/db/data/{self.value}"


class DelegationTokenIssuer:
    """Mints delegation tokens from the builder key to one audience DID."""

    def __init__(
        self,
        builder_keypair: Keypair,
        audience_did: str,
        root_token: str | None = None,
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
    ) -> None:
        """
        Initialize issuer.

        Args:
            builder_keypair: Application's long-lived signing key
            audience_did: DID of the identity acting on the vault (the user)
            root_token: Optional root token from the auth service, referenced as proof
            ttl_seconds: Token lifetime (default 1 hour)
        """
        self._builder = builder_keypair
        self._builder_did = builder_keypair.to_did()
        self._audience_did = audience_did
        self._ttl_seconds = ttl_seconds
        self._proof = (
            hashlib.sha256(root_token.encode("utf-8")).hexdigest() if root_token else None
        )

    @property
    def issuer_did(self) -> str:
        return self._builder_did

    @property
    def audience_did(self) -> str:
        return self._audience_did

    def mint(self, operation: VaultCommand | str, audience: str | None = None) -> str:
        """
        Issue a token scoped to a single operation category.

        Args:
            operation: create, read, update, delete, grant, revoke or register
            audience: Overrides the default audience (the builder itself for register)

        Returns:
            str: Compact signed JWT

        Raises:
            ValueError: If the operation is unknown
        """
        command = VaultCommand(operation)
        now = int(time.time())
        claims: dict[str, Any] = {
            "iss": self._builder_did,
            "sub": self._builder_did,
            "aud": audience or self._audience_did,
            "cmd": command.path,
            "iat": now,
            "exp": now + self._ttl_seconds,
            "nonce": uuid.uuid4().hex,
        }
        if self._proof:
            claims["prf"] = [self._proof]

        token = jwt.encode(claims, self._builder.private_key, algorithm=TOKEN_ALGORITHM)
        logger.debug(
            "Minted delegation token",
            extra={"command": command.path, "token": token_fingerprint(token)},
        )
        return token


def decode_delegation_token(token: str, issuer_did: str, audience_did: str) -> dict[str, Any]:
    """
    Verify a delegation token and return its claims.

    Args:
        token: Compact JWT
        issuer_did: Expected signer; its DID carries the verifying key
        audience_did: Expected audience

    Returns:
        dict: Verified claims

    Raises:
        jwt.InvalidTokenError: Bad signature, wrong audience/issuer, or expired
    """
    return jwt.decode(
        token,
        key=public_key_from_did(issuer_did),
        algorithms=[TOKEN_ALGORITHM],
        audience=audience_did,
        issuer=issuer_did,
    )
