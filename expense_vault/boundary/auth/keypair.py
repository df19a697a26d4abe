"""
secp256k1 keypairs and DIDs for vault identities.

Dependencies: cryptography
System role: Identity material for the application (builder) and the user
"""

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

DID_METHOD_PREFIX = "did:nil:"


class Keypair:
    """A secp256k1 private key with its DID."""

    def __init__(self, private_key: ec.EllipticCurvePrivateKey) -> None:
        if not isinstance(private_key.curve, ec.SECP256K1):
            raise ValueError("Keypair requires a secp256k1 key")
        self._private_key = private_key

    @classmethod
    def from_hex(cls, private_key_hex: str) -> "Keypair":
        """
        Build a keypair from a hex-encoded private scalar.

        Args:
            private_key_hex: 64 hex chars, optional 0x prefix

        Raises:
            ValueError: If the value is not valid hex or out of range
        """
        value = private_key_hex.strip()
        if value.startswith(("0x", "0X")):
            value = value[2:]
        try:
            scalar = int(value, 16)
        except ValueError as e:
            raise ValueError("Private key must be hex encoded") from e
        return cls(ec.derive_private_key(scalar, ec.SECP256K1()))

    @classmethod
    def generate(cls) -> "Keypair":
        return cls(ec.generate_private_key(ec.SECP256K1()))

    @property
    def private_key(self) -> ec.EllipticCurvePrivateKey:
        return self._private_key

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self._private_key.public_key()

    def private_key_hex(self) -> str:
        return format(self._private_key.private_numbers().private_value, "064x")

    def public_key_hex(self) -> str:
        """Compressed SEC1 public key as hex."""
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.CompressedPoint,
        ).hex()

    def to_did(self) -> str:
        return f"{DID_METHOD_PREFIX}{self.public_key_hex()}"


def public_key_from_did(did: str) -> ec.EllipticCurvePublicKey:
    """
    Recover the verifying key embedded in a did:nil identifier.

    Raises:
        ValueError: If the DID has the wrong method or a malformed key
    """
    if not did.startswith(DID_METHOD_PREFIX):
        raise ValueError(f"Unsupported DID method: {did}")
    raw = bytes.fromhex(did[len(DID_METHOD_PREFIX):])
    return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), raw)
