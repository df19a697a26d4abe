"""Expense Vault: expense CRUD proxied to an encrypted secret-vault network."""

__version__ = "0.1.0"
