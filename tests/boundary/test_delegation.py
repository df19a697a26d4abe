"""
Test suite for keypairs and delegation tokens.

System role: Verification of per-operation vault authorization material
"""

import hashlib

import jwt
import pytest

from expense_vault.boundary.auth import (
    DelegationTokenIssuer,
    Keypair,
    VaultCommand,
    decode_delegation_token,
)
from expense_vault.boundary.auth.keypair import public_key_from_did

PRIVATE_KEY_HEX = "11" * 32


class TestKeypair:
    """Test suite for Keypair and DID handling."""

    def test_from_hex_round_trips_private_key(self) -> None:
        keypair = Keypair.from_hex(PRIVATE_KEY_HEX)
        assert keypair.private_key_hex() == PRIVATE_KEY_HEX

    def test_from_hex_accepts_0x_prefix(self) -> None:
        assert Keypair.from_hex("0x" + PRIVATE_KEY_HEX).to_did() == Keypair.from_hex(PRIVATE_KEY_HEX).to_did()

    def test_from_hex_rejects_non_hex(self) -> None:
        with pytest.raises(ValueError):
            Keypair.from_hex("not-a-key")

    def test_did_embeds_compressed_public_key(self) -> None:
        keypair = Keypair.generate()
        did = keypair.to_did()

        assert did.startswith("did:nil:")
        assert len(keypair.public_key_hex()) == 66
        assert public_key_from_did(did).public_numbers() == keypair.public_key.public_numbers()

    def test_public_key_from_did_rejects_other_methods(self) -> None:
        with pytest.raises(ValueError, match="Unsupported DID method"):
            public_key_from_did("did:key:abc")


class TestDelegationTokenIssuer:
    """Test suite for DelegationTokenIssuer.mint."""

    @pytest.mark.parametrize(
        "operation, expected_cmd",
        [
            (VaultCommand.CREATE, "/nil/db/data/create"),
            (VaultCommand.READ, "/nil/db/data/read"),
            (VaultCommand.UPDATE, "/nil/db/data/update"),
            (VaultCommand.DELETE, "/nil/db/data/delete"),
            (VaultCommand.GRANT, "/nil/db/acl/grant"),
            (VaultCommand.REVOKE, "/nil/db/acl/revoke"),
        ],
    )
    def test_token_is_scoped_to_operation(
        self, issuer, builder_keypair, user_keypair, operation, expected_cmd
    ) -> None:
        """Test the cmd claim names the single operation the token allows."""
        # Act
        token = issuer.mint(operation)
        claims = decode_delegation_token(token, builder_keypair.to_did(), user_keypair.to_did())

        # Assert
        assert claims["cmd"] == expected_cmd

    def test_token_lifetime_is_one_hour(self, issuer, builder_keypair, user_keypair) -> None:
        claims = decode_delegation_token(
            issuer.mint("create"), builder_keypair.to_did(), user_keypair.to_did()
        )
        assert claims["exp"] - claims["iat"] == 3600

    def test_token_names_builder_and_user(self, issuer, builder_keypair, user_keypair) -> None:
        claims = decode_delegation_token(
            issuer.mint("read"), builder_keypair.to_did(), user_keypair.to_did()
        )
        assert claims["iss"] == builder_keypair.to_did()
        assert claims["sub"] == builder_keypair.to_did()
        assert claims["aud"] == user_keypair.to_did()
        assert "prf" not in claims

    def test_each_mint_is_unique(self, issuer) -> None:
        assert issuer.mint("create") != issuer.mint("create")

    def test_audience_override(self, issuer, builder_keypair) -> None:
        builder_did = builder_keypair.to_did()
        token = issuer.mint(VaultCommand.REGISTER, audience=builder_did)
        claims = decode_delegation_token(token, builder_did, builder_did)
        assert claims["cmd"] == "/nil/db/builders/register"

    def test_root_token_is_referenced_as_proof(self, builder_keypair, user_keypair) -> None:
        issuer = DelegationTokenIssuer(
            builder_keypair, audience_did=user_keypair.to_did(), root_token="root-token"
        )
        claims = decode_delegation_token(
            issuer.mint("create"), builder_keypair.to_did(), user_keypair.to_did()
        )
        assert claims["prf"] == [hashlib.sha256(b"root-token").hexdigest()]

    def test_unknown_operation_is_rejected(self, issuer) -> None:
        with pytest.raises(ValueError):
            issuer.mint("launch")

    def test_token_for_another_audience_fails_verification(self, issuer, builder_keypair) -> None:
        token = issuer.mint("read")
        with pytest.raises(jwt.InvalidAudienceError):
            decode_delegation_token(token, builder_keypair.to_did(), Keypair.generate().to_did())

    def test_token_signed_by_another_key_fails_verification(self, user_keypair) -> None:
        impostor = DelegationTokenIssuer(Keypair.generate(), audience_did=user_keypair.to_did())
        token = impostor.mint("read")
        with pytest.raises(jwt.InvalidTokenError):
            decode_delegation_token(token, Keypair.generate().to_did(), user_keypair.to_did())

    def test_expired_token_fails_verification(self, builder_keypair, user_keypair) -> None:
        issuer = DelegationTokenIssuer(
            builder_keypair, audience_did=user_keypair.to_did(), ttl_seconds=-60
        )
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_delegation_token(
                issuer.mint("read"), builder_keypair.to_did(), user_keypair.to_did()
            )
