"""
Authorization boundary modules.

Exports: Keypair, DelegationTokenIssuer, VaultCommand
"""

from .delegation import DelegationTokenIssuer, VaultCommand, decode_delegation_token
from .keypair import Keypair

__all__ = ["DelegationTokenIssuer", "Keypair", "VaultCommand", "decode_delegation_token"]
