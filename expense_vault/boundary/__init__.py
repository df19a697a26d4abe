"""
Boundary layer for external system integrations.

Handles all interactions with the secret-vault network and its authorization
scheme. Provides clients and token issuers for infrastructure dependencies.
"""
