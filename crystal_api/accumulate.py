"""
Accumulate JSON-RPC client for the API.

Simplified async client for looking up account data on an Accumulate node.
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx
import structlog

from .models import ResolvedAccount

logger = structlog.get_logger()


class AccumulateRPCError(Exception):
    """Error envelope returned by an Accumulate node."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"RPC Error {code}: {message}")


class UnexpectedResponseError(Exception):
    """Response did not have the expected `result.data` shape."""


@dataclass
class AccumulateRPCConfig:
    """Accumulate RPC configuration."""

    url: str = "https://mainnet.accumulatenetwork.io/v3"
    timeout: Optional[float] = None


class AccumulateClient:
    """
    Async Accumulate v3 JSON-RPC client.
    """

    def __init__(self, config: AccumulateRPCConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client
        self._request_id = 0

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Make an RPC call and return its `result`."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or {},
        }

        client = await self._get_client()
        response = await client.post(self.config.url, json=payload)
        response.raise_for_status()

        result = response.json()
        if not isinstance(result, dict):
            raise UnexpectedResponseError("RPC response is not an object")

        error = result.get("error")
        if error:
            if isinstance(error, dict):
                raise AccumulateRPCError(error.get("code", -1), error.get("message", "Unknown error"))
            raise AccumulateRPCError(-1, str(error))

        return result.get("result")

    async def query(self, url: str) -> dict[str, Any]:
        """Query an account and return its `data` record."""
        result = await self.call("query", {"url": url})
        if isinstance(result, dict):
            data = result.get("data")
            if isinstance(data, dict):
                return data
        raise UnexpectedResponseError("unexpected API response format")


class AccountResolver:
    """
    Best-effort account lookup.

    Makes a single attempt per account. Any failure is logged and reported
    as no data so proof generation can proceed with defaults.
    """

    def __init__(self, client: AccumulateClient):
        self.client = client

    async def resolve(self, account: str) -> Optional[ResolvedAccount]:
        try:
            data = await self.client.query(account)
        except Exception as e:
            logger.warning("Account resolution failed", account=account, error=str(e))
            return None
        return ResolvedAccount.from_data(data)

    async def close(self) -> None:
        await self.client.close()
