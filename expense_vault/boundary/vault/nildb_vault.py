"""
HTTP client for a network of nilDB storage nodes.

Writes fan out to every configured node; reads return the first node that
answers. Node responses are mapped onto the application's vault exceptions.
Start-up registration is retried with exponential backoff on transport
failures.

Dependencies: httpx, tenacity, expense_vault.boundary.vault.vault_client
System role: Production vault backend (VAULT_BACKEND=nildb)
"""

import asyncio
import logging
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from expense_vault.boundary.vault.vault_client import AccessControl, VaultClient
from expense_vault.core.exceptions import (
    ConfigurationError,
    PermissionDeniedError,
    RecordNotFoundError,
    VaultError,
    VaultOperationError,
)

logger = logging.getLogger(__name__)


def _error_text(response: httpx.Response) -> str:
    """Best-effort error message from a node response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        errors = body.get("errors") or body.get("error") or body.get("message")
        if isinstance(errors, list):
            return "; ".join(str(e) for e in errors)
        if errors:
            return str(errors)
    return str(body)


def _data_field(body: dict[str, Any], name: str) -> Any:
    """Read `data.<name>` from a node answer, tolerating a missing or non-object `data`."""
    data = body.get("data")
    return data.get(name) if isinstance(data, dict) else None


class NilDBVaultClient(VaultClient):
    """Vault client speaking the nilDB node REST API with bearer delegation tokens."""

    def __init__(
        self,
        node_urls: list[str],
        timeout: float = 30.0,
        init_attempts: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize client for a set of nodes.

        Args:
            node_urls: Base URLs of the storage nodes
            timeout: Per-request timeout in seconds
            init_attempts: Attempts for start-up registration on transport errors
            transport: Optional httpx transport (tests inject httpx.MockTransport)

        Raises:
            ConfigurationError: If no node URL is given
        """
        if not node_urls:
            raise ConfigurationError("At least one vault node URL is required (VAULT_NODE_URLS)")
        self._node_urls = [url.rstrip("/") for url in node_urls]
        self._init_attempts = init_attempts
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def node_urls(self) -> list[str]:
        return list(self._node_urls)

    async def _request(
        self,
        node_url: str,
        method: str,
        path: str,
        token: str,
        operation: str,
        document: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method,
                f"{node_url}{path}",
                headers={"Authorization": f"Bearer {token}"},
                json=payload,
            )
        except httpx.HTTPError as e:
            raise VaultOperationError(
                f"{operation} request to {node_url} failed: {e}",
                operation=operation,
                document_id=document,
                details={"node": node_url},
            ) from e

        if response.is_error:
            message = _error_text(response)
            if response.status_code in (401, 403) or "permission denied" in message.lower():
                raise PermissionDeniedError(
                    f"permission denied: {message}", operation=operation, document_id=document
                )
            if response.status_code == 404:
                raise RecordNotFoundError(message, operation=operation, document_id=document)
            raise VaultOperationError(
                message,
                operation=operation,
                document_id=document,
                details={"node": node_url, "status_code": response.status_code},
            )

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise VaultOperationError(
                f"Malformed response from {node_url}", operation=operation, document_id=document
            ) from e
        if not isinstance(body, dict):
            raise VaultOperationError(
                f"Unexpected {type(body).__name__} response from {node_url}",
                operation=operation,
                document_id=document,
                details={"node": node_url},
            )
        return body

    async def _fan_out(
        self,
        method: str,
        path: str,
        token: str,
        operation: str,
        document: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send the same request to every node; any node failure fails the call."""
        results = await asyncio.gather(
            *(
                self._request(url, method, path, token, operation, document, payload)
                for url in self._node_urls
            )
        )
        return dict(zip(self._node_urls, results))

    async def _first_answer(
        self,
        method: str,
        path: str,
        token: str,
        operation: str,
        document: str | None = None,
    ) -> dict[str, Any]:
        """Query nodes in order and return the first successful body."""
        last_error: VaultError | None = None
        for url in self._node_urls:
            try:
                return await self._request(url, method, path, token, operation, document)
            except PermissionDeniedError:
                raise
            except VaultError as e:
                logger.warning(
                    "Vault node did not answer, trying next",
                    extra={"node": url, "operation": operation, "error": e.message},
                )
                last_error = e
        if last_error is None:
            raise VaultOperationError(
                "No vault node configured", operation=operation, document_id=document
            )
        raise last_error

    async def initialize(
        self,
        token: str,
        builder_did: str,
        builder_name: str,
        collection: dict[str, Any],
    ) -> None:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(VaultOperationError),
            stop=stop_after_attempt(self._init_attempts),
            wait=wait_exponential_jitter(initial=1, max=10, jitter=1),
            before_sleep=lambda retry_state: logger.warning(
                f"{__name__}:initialize - Retry {retry_state.attempt_number}/{self._init_attempts}"
            ),
            reraise=True,
        ):
            with attempt:
                await self._register_builder(token, builder_did, builder_name)

        try:
            await self._fan_out("POST", "/v1/collections", token, "create_collection", payload=collection)
            logger.info("Expense collection created", extra={"collection": collection["_id"]})
        except VaultError as e:
            logger.info(
                "Collection may already exist",
                extra={"collection": collection["_id"], "error": e.message},
            )

    async def _register_builder(self, token: str, builder_did: str, builder_name: str) -> None:
        try:
            profile = await self._first_answer("GET", "/v1/builders/me", token, "read_profile")
            logger.info(
                "Builder already registered",
                extra={"builder": _data_field(profile, "name") or builder_name},
            )
            return
        except RecordNotFoundError:
            pass
        except PermissionDeniedError:
            # Unregistered builders are refused rather than reported missing
            pass

        try:
            await self._fan_out(
                "POST",
                "/v1/builders/register",
                token,
                "register",
                payload={"did": builder_did, "name": builder_name},
            )
            logger.info("Builder registered successfully", extra={"builder": builder_name})
        except VaultError as e:
            if "duplicate key" in e.message.lower():
                logger.info("Builder already registered (duplicate key)", extra={"builder": builder_name})
                return
            raise

    async def create_data(
        self,
        token: str,
        owner: str,
        collection: str,
        data: list[dict[str, Any]],
        acl: AccessControl,
    ) -> dict[str, Any]:
        return await self._fan_out(
            "POST",
            "/v1/data/owned",
            token,
            "create",
            payload={
                "owner": owner,
                "collection": collection,
                "data": data,
                "acl": acl.to_dict(),
            },
        )

    async def read_data(self, token: str, collection: str, document: str) -> dict[str, Any]:
        body = await self._first_answer(
            "GET", f"/v1/users/data/{collection}/{document}", token, "read", document
        )
        data = body.get("data")
        if not isinstance(data, dict):
            raise RecordNotFoundError(
                f"Document not found: {document}", operation="read", document_id=document
            )
        return data

    async def update_data(
        self,
        token: str,
        collection: str,
        document: str,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        results = await self._fan_out(
            "POST",
            "/v1/data/update",
            token,
            "update",
            document,
            payload={
                "collection": collection,
                "filter": {"_id": document},
                "update": {"$set": changes},
            },
        )
        if all(_data_field(r, "matched") == 0 for r in results.values()):
            raise RecordNotFoundError(
                f"Document not found: {document}", operation="update", document_id=document
            )
        return results

    async def delete_data(self, token: str, collection: str, document: str) -> dict[str, Any]:
        results = await self._fan_out(
            "POST",
            "/v1/data/delete",
            token,
            "delete",
            document,
            payload={"collection": collection, "filter": {"_id": document}},
        )
        if all(_data_field(r, "deletedCount") == 0 for r in results.values()):
            raise RecordNotFoundError(
                f"Document not found: {document}", operation="delete", document_id=document
            )
        return results

    async def grant_access(
        self,
        token: str,
        collection: str,
        document: str,
        acl: AccessControl,
    ) -> dict[str, Any]:
        return await self._fan_out(
            "POST",
            "/v1/users/data/acl/grant",
            token,
            "grant",
            document,
            payload={"collection": collection, "document": document, "acl": acl.to_dict()},
        )

    async def revoke_access(
        self,
        token: str,
        collection: str,
        document: str,
        grantee: str,
    ) -> dict[str, Any]:
        return await self._fan_out(
            "POST",
            "/v1/users/data/acl/revoke",
            token,
            "revoke",
            document,
            payload={"collection": collection, "document": document, "grantee": grantee},
        )

    async def close(self) -> None:
        await self._client.aclose()
