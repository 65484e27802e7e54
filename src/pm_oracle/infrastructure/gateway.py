"""HTTP oracle gateway — block height (Hiro burn-blocks) and BTC spot (CoinGecko)."""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class HttpOracleGateway:
    """Async client for the block-height and spot-price feeds.

    Every request is bounded by ``timeout``; any failure degrades to None.
    """

    def __init__(
        self,
        block_feed_url: str = "https://api.hiro.so",
        price_feed_url: str = "https://api.coingecko.com/api/v3/simple/price",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.block_feed_url = block_feed_url.rstrip("/")
        self.price_feed_url = price_feed_url
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        http = await self._get_http()
        resp = await http.get(url, params=params)
        resp.raise_for_status()
        return resp.json()

    async def current_block(self) -> int | None:
        try:
            data = await self._get_json(
                f"{self.block_feed_url}/extended/v2/burn-blocks", params={"limit": 1}
            )
            results = data["results"]
            if not results:
                logger.warning("Block feed returned no results")
                return None
            height = int(results[0]["burn_block_height"])
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("Block feed unavailable: %r", exc)
            return None
        return height if height > 0 else None

    async def current_price(self) -> int | None:
        try:
            data = await self._get_json(
                self.price_feed_url, params={"ids": "bitcoin", "vs_currencies": "usd"}
            )
            usd = Decimal(str(data["bitcoin"]["usd"]))
            cents = int((usd * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
        except (httpx.HTTPError, KeyError, TypeError, ValueError, InvalidOperation) as exc:
            logger.warning("Price feed unavailable: %r", exc)
            return None
        return cents if cents > 0 else None
