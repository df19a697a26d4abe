"""Run the API server: python -m expense_vault."""

from expense_vault.api.main import run

run()
