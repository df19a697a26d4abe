"""
Application layer.

Use case orchestration between the API and the vault boundary.
"""
