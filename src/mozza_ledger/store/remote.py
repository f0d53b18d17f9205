"""Live store: async client for the remote document store REST API."""

import asyncio
from decimal import Decimal
from typing import Any

import httpx
import structlog

from mozza_ledger.config import get_settings
from mozza_ledger.errors import NotFoundError, PreconditionFailedError, StorageError
from mozza_ledger.store.base import BatchOperation, Increment, LedgerStore

logger = structlog.get_logger(__name__)

INCREMENT_KEY = "__increment__"


def _encode(value: Any) -> Any:
    """Convert a record value into its JSON wire form."""
    if isinstance(value, Increment):
        return {INCREMENT_KEY: str(value.amount)}
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    return value


def _encode_operation(operation: BatchOperation) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "op": operation.kind.value,
        "collection": operation.collection,
        "id": operation.record_id,
        "data": _encode(operation.data),
    }
    if operation.precondition:
        payload["precondition"] = _encode(operation.precondition)
    return payload


class RemoteLedgerStore(LedgerStore):
    """Ledger store backed by a remote document store.

    Batches are committed server-side in a single transaction.
    """

    supports_atomic_batch = True

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.store_url).rstrip("/")
        if token is None and settings.store_token is not None:
            token = settings.store_token.get_secret_value()
        self._token = token
        self._timeout = timeout if timeout is not None else settings.store_timeout
        self._max_retries = (
            max_retries if max_retries is not None else settings.store_max_retries
        )
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    # === Generic Request Method ===

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        retry: bool = True,
        retry_count: int = 0,
    ) -> Any:
        """Make a request, retrying transport failures with backoff."""
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=path,
                json=json,
                headers=self._get_headers(),
            )
        except httpx.RequestError as e:
            if retry and retry_count < self._max_retries:
                await asyncio.sleep(2**retry_count)  # Exponential backoff
                return await self._request(method, path, json, retry, retry_count + 1)
            logger.error("store_request_failed", method=method, path=path, error=str(e))
            raise StorageError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except Exception:
                error_detail = {
                    "raw": response.text[:500] if response.text else "empty response"
                }
            if response.status_code in (409, 412):
                raise PreconditionFailedError(
                    f"Precondition failed: {response.status_code}",
                    status_code=response.status_code,
                    details=error_detail,
                )
            raise StorageError(
                f"Store error: {response.status_code}",
                status_code=response.status_code,
                details=error_detail,
            )

        return response.json() if response.content else {}

    @staticmethod
    def _extract_items(result: Any) -> list[dict[str, Any]]:
        """Return list of items from a list or paged response."""
        if isinstance(result, list):
            return result
        if isinstance(result, dict):
            items = result.get("items")
            if isinstance(items, list):
                return items
        return []

    # === Reads ===

    async def read_collection(self, name: str) -> list[dict[str, Any]]:
        result = await self._request("GET", f"/collections/{name}")
        return self._extract_items(result)

    async def get_record(self, collection: str, record_id: str) -> dict[str, Any] | None:
        try:
            result = await self._request("GET", f"/collections/{collection}/{record_id}")
        except StorageError as e:
            if e.status_code == 404:
                return None
            raise
        return result if isinstance(result, dict) else None

    # === Writes ===

    async def append_record(self, collection: str, record: dict[str, Any]) -> str:
        operation = BatchOperation.append(collection, record)
        result = await self._request(
            "POST", f"/collections/{collection}", json=_encode(operation.data), retry=False
        )
        if isinstance(result, dict) and result.get("id"):
            return str(result["id"])
        return operation.record_id

    async def update_record(
        self, collection: str, record_id: str, fields: dict[str, Any]
    ) -> None:
        try:
            await self._request(
                "PATCH",
                f"/collections/{collection}/{record_id}",
                json=_encode(fields),
                retry=False,
            )
        except StorageError as e:
            if e.status_code == 404:
                raise NotFoundError(collection, record_id) from e
            raise

    async def set_record(
        self, collection: str, record_id: str, record: dict[str, Any]
    ) -> None:
        data = dict(record)
        data["id"] = record_id
        await self._request(
            "PUT", f"/collections/{collection}/{record_id}", json=_encode(data)
        )

    async def delete_record(self, collection: str, record_id: str) -> None:
        try:
            await self._request("DELETE", f"/collections/{collection}/{record_id}")
        except StorageError as e:
            if e.status_code != 404:
                raise

    async def commit_batch(self, operations: list[BatchOperation]) -> None:
        # Not retried here: a lost response may still have committed, so the
        # caller decides whether to re-run the whole operation.
        try:
            await self._request(
                "POST",
                "/batch",
                json={"operations": [_encode_operation(op) for op in operations]},
                retry=False,
            )
        except StorageError as e:
            if e.status_code == 404:
                details = e.details if isinstance(e.details, dict) else {}
                raise NotFoundError(
                    str(details.get("collection", "batch")), str(details.get("id", ""))
                ) from e
            raise
        logger.debug("batch_committed", operations=len(operations))
