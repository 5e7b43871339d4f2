"""
Tests for the Accumulate client and account resolver.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
from structlog.testing import capture_logs

from crystal_api.accumulate import (
    AccountResolver,
    AccumulateClient,
    AccumulateRPCConfig,
    AccumulateRPCError,
    UnexpectedResponseError,
)
from crystal_api.models import ResolvedAccount

RPC_URL = "https://node.test/v3"
ACCOUNT = "acc://alice.acme/tokens"


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> AccumulateClient:
    transport = httpx.MockTransport(handler)
    return AccumulateClient(
        AccumulateRPCConfig(url=RPC_URL),
        client=httpx.AsyncClient(transport=transport),
    )


def json_handler(payload: Any, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return handler


class TestAccumulateClient:
    """Tests for the JSON-RPC envelope and response unwrapping."""

    @pytest.mark.asyncio
    async def test_query_sends_jsonrpc_envelope(self):
        seen: list[dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == RPC_URL
            assert request.method == "POST"
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"result": {"data": {"type": "identity"}}})

        client = make_client(handler)
        data = await client.query(ACCOUNT)
        await client.close()

        assert data == {"type": "identity"}
        assert seen == [
            {"jsonrpc": "2.0", "id": 1, "method": "query", "params": {"url": ACCOUNT}}
        ]

    @pytest.mark.asyncio
    async def test_request_ids_increment(self):
        ids: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            ids.append(json.loads(request.content)["id"])
            return httpx.Response(200, json={"result": {"data": {}}})

        client = make_client(handler)
        await client.query(ACCOUNT)
        await client.query(ACCOUNT)
        await client.close()

        assert ids == [1, 2]

    @pytest.mark.asyncio
    async def test_rpc_error_raises(self):
        client = make_client(json_handler({"error": {"code": -32601, "message": "not found"}}))
        with pytest.raises(AccumulateRPCError) as exc_info:
            await client.query(ACCOUNT)
        await client.close()

        assert exc_info.value.code == -32601
        assert "not found" in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"result": None},
            {"result": {"data": "oops"}},
            {"result": {"record": {}}},
            ["not", "an", "object"],
        ],
    )
    async def test_unexpected_shape_raises(self, payload):
        client = make_client(json_handler(payload))
        with pytest.raises(UnexpectedResponseError):
            await client.query(ACCOUNT)
        await client.close()

    @pytest.mark.asyncio
    async def test_http_status_error_raises(self):
        client = make_client(json_handler({}, status_code=502))
        with pytest.raises(httpx.HTTPStatusError):
            await client.query(ACCOUNT)
        await client.close()


class TestAccountResolver:
    """Tests for best-effort resolution."""

    @pytest.mark.asyncio
    async def test_resolves_fields(self):
        client = make_client(
            json_handler(
                {
                    "jsonrpc": "2.0",
                    "id": 1,
                    "result": {
                        "data": {
                            "type": "liteTokenAccount",
                            "balance": "500",
                            "creditBalance": 10.0,
                        }
                    },
                }
            )
        )
        resolver = AccountResolver(client)
        resolved = await resolver.resolve(ACCOUNT)
        await resolver.close()

        assert resolved == ResolvedAccount(type="liteTokenAccount", balance="500", credit_balance=10)

    @pytest.mark.asyncio
    async def test_network_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("network unreachable", request=request)

        resolver = AccountResolver(make_client(handler))
        with capture_logs() as logs:
            resolved = await resolver.resolve(ACCOUNT)
        await resolver.close()

        assert resolved is None
        assert logs[0]["event"] == "Account resolution failed"
        assert logs[0]["log_level"] == "warning"
        assert logs[0]["account"] == ACCOUNT

    @pytest.mark.asyncio
    async def test_malformed_json_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>bad gateway</html>")

        resolver = AccountResolver(make_client(handler))
        assert await resolver.resolve(ACCOUNT) is None
        await resolver.close()

    @pytest.mark.asyncio
    async def test_rpc_error_returns_none(self):
        resolver = AccountResolver(
            make_client(json_handler({"error": {"code": -33404, "message": "account not found"}}))
        )
        assert await resolver.resolve(ACCOUNT) is None
        await resolver.close()

    @pytest.mark.asyncio
    async def test_single_attempt(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(503)

        resolver = AccountResolver(make_client(handler))
        assert await resolver.resolve(ACCOUNT) is None
        await resolver.close()

        assert calls == 1


class TestResolvedAccount:
    """Tests for field extraction from `result.data`."""

    def test_numeric_balance_formatted_without_decimals(self):
        assert ResolvedAccount.from_data({"balance": 1250000000.0}).balance == "1250000000"
        assert ResolvedAccount.from_data({"balance": 42}).balance == "42"

    def test_credit_balance_truncated(self):
        assert ResolvedAccount.from_data({"creditBalance": 10.9}).credit_balance == 10

    def test_wrong_types_ignored(self):
        resolved = ResolvedAccount.from_data(
            {"type": 7, "balance": ["1"], "creditBalance": "100"}
        )
        assert resolved == ResolvedAccount()

    def test_booleans_are_not_numbers(self):
        resolved = ResolvedAccount.from_data({"balance": True, "creditBalance": False})
        assert resolved.balance is None
        assert resolved.credit_balance is None

    def test_non_finite_numbers_ignored(self):
        resolved = ResolvedAccount.from_data(
            {"balance": float("inf"), "creditBalance": float("nan")}
        )
        assert resolved.balance is None
        assert resolved.credit_balance is None

    def test_empty_data(self):
        assert ResolvedAccount.from_data({}) == ResolvedAccount()
