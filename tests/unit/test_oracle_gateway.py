"""Unit tests for HttpOracleGateway using httpx.MockTransport."""

import httpx
import pytest

from src.pm_oracle.infrastructure.gateway import HttpOracleGateway

BLOCK_URL = "https://blocks.test"
PRICE_URL = "https://prices.test/simple/price"


def _gateway(handler) -> HttpOracleGateway:
    return HttpOracleGateway(
        BLOCK_URL, PRICE_URL, timeout=1.0, transport=httpx.MockTransport(handler)
    )


class TestCurrentBlock:
    @pytest.mark.asyncio
    async def test_reads_latest_burn_block(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"results": [{"burn_block_height": 870_123}]})

        gw = _gateway(handler)
        assert await gw.current_block() == 870_123
        assert seen[0].url.path == "/extended/v2/burn-blocks"
        assert seen[0].url.params["limit"] == "1"
        await gw.close()

    @pytest.mark.asyncio
    async def test_empty_results_is_unavailable(self) -> None:
        gw = _gateway(lambda r: httpx.Response(200, json={"results": []}))
        assert await gw.current_block() is None

    @pytest.mark.asyncio
    async def test_http_error_is_unavailable(self) -> None:
        gw = _gateway(lambda r: httpx.Response(502, text="bad gateway"))
        assert await gw.current_block() is None

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        assert await _gateway(handler).current_block() is None

    @pytest.mark.asyncio
    async def test_malformed_body_is_unavailable(self) -> None:
        gw = _gateway(lambda r: httpx.Response(200, text="<html>"))
        assert await gw.current_block() is None


class TestCurrentPrice:
    @pytest.mark.asyncio
    async def test_price_in_cents(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"bitcoin": {"usd": 67123.45}})

        assert await _gateway(handler).current_price() == 6_712_345
        assert seen[0].url.params["ids"] == "bitcoin"
        assert seen[0].url.params["vs_currencies"] == "usd"

    @pytest.mark.asyncio
    async def test_half_cent_rounds_up(self) -> None:
        gw = _gateway(lambda r: httpx.Response(200, json={"bitcoin": {"usd": 100.005}}))
        assert await gw.current_price() == 10_001

    @pytest.mark.asyncio
    async def test_zero_price_is_unavailable(self) -> None:
        gw = _gateway(lambda r: httpx.Response(200, json={"bitcoin": {"usd": 0}}))
        assert await gw.current_price() is None

    @pytest.mark.asyncio
    async def test_missing_field_is_unavailable(self) -> None:
        gw = _gateway(lambda r: httpx.Response(200, json={"ethereum": {"usd": 3000}}))
        assert await gw.current_price() is None

    @pytest.mark.asyncio
    async def test_connect_error_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        assert await _gateway(handler).current_price() is None
