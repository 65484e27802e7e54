"""Market store implementations of MarketStoreProtocol.

Persisted layout: one JSON array of market records under a single key, field
names in camelCase. The whole document is the unit of read and write.

RedisMarketStore  — optimistic compare-and-swap (WATCH/MULTI/EXEC), retried on
                    conflict; safe with any number of engine instances.
InMemoryMarketStore — one asyncio.Lock around each cycle; single process only.
"""

import asyncio
import json
import logging
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from src.pm_common.datetime_utils import parse_iso_utc, to_iso_utc
from src.pm_common.enums import Side
from src.pm_common.errors import StoreConflictError, StoreUnavailableError
from src.pm_market.domain.models import Market
from src.pm_market.domain.repository import MarketMutator, T

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Record mappers
# ---------------------------------------------------------------------------


def _decode_winning_side(value: Any) -> Side | None:
    # Legacy documents stored the outcome as a bool (true = YES).
    if value is None:
        return None
    if isinstance(value, bool):
        return Side.YES if value else Side.NO
    return Side(value)


def _market_to_record(m: Market) -> dict[str, Any]:
    return {
        "id": m.id,
        "creator": m.creator,
        "targetPrice": m.target_price,
        "settlementBlock": m.settlement_block,
        "yesPool": m.yes_pool,
        "noPool": m.no_pool,
        "settled": m.settled,
        "winningSide": m.winning_side.value if m.winning_side else None,
        "settlementPrice": m.settlement_price,
        "description": m.description,
        "createdAt": to_iso_utc(m.created_at),
    }


def _record_to_market(rec: dict[str, Any]) -> Market:
    return Market(
        id=int(rec["id"]),
        creator=rec["creator"],
        target_price=int(rec["targetPrice"]),
        settlement_block=int(rec["settlementBlock"]),
        yes_pool=int(rec.get("yesPool", 0)),
        no_pool=int(rec.get("noPool", 0)),
        settled=bool(rec["settled"]),
        winning_side=_decode_winning_side(rec.get("winningSide")),
        settlement_price=int(rec.get("settlementPrice", 0)),
        description=rec.get("description", ""),
        created_at=parse_iso_utc(rec["createdAt"]),
    )


def encode_markets(markets: list[Market]) -> str:
    return json.dumps([_market_to_record(m) for m in markets])


def decode_markets(raw: str | None) -> list[Market]:
    """Decode the stored document; a missing key is an empty market set."""
    if raw is None:
        return []
    try:
        records = json.loads(raw)
        if not isinstance(records, list):
            raise TypeError(f"expected a list, got {type(records).__name__}")
        return [_record_to_market(rec) for rec in records]
    except (KeyError, TypeError, ValueError) as exc:
        logger.error("Market document is corrupt: %s", exc)
        raise StoreUnavailableError(f"corrupt market document ({exc})") from exc


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------


class RedisMarketStore:
    """Market set under one Redis key, mutated with optimistic CAS."""

    def __init__(self, redis: aioredis.Redis, key: str = "markets", max_retries: int = 10) -> None:
        self._redis = redis
        self._key = key
        self._max_retries = max_retries

    async def load_all(self) -> list[Market]:
        try:
            raw = await self._redis.get(self._key)
        except RedisError as exc:
            logger.error("Market store read failed: %s", exc)
            raise StoreUnavailableError(str(exc)) from exc
        return decode_markets(raw)

    async def save_all(self, markets: list[Market]) -> None:
        try:
            await self._redis.set(self._key, encode_markets(markets))
        except RedisError as exc:
            logger.error("Market store write failed: %s", exc)
            raise StoreUnavailableError(str(exc)) from exc

    async def update(self, mutator: MarketMutator[T]) -> T:
        for attempt in range(1, self._max_retries + 1):
            try:
                async with self._redis.pipeline(transaction=True) as pipe:
                    await pipe.watch(self._key)
                    markets = decode_markets(await pipe.get(self._key))
                    result = mutator(markets)
                    pipe.multi()
                    pipe.set(self._key, encode_markets(markets))
                    await pipe.execute()
                    return result
            except WatchError:
                logger.info(
                    "Market store CAS conflict on %r (attempt %d/%d)",
                    self._key, attempt, self._max_retries,
                )
            except RedisError as exc:
                logger.error("Market store update failed: %s", exc)
                raise StoreUnavailableError(str(exc)) from exc

        logger.error("Market store CAS gave up after %d attempts", self._max_retries)
        raise StoreConflictError(self._max_retries)


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryMarketStore:
    """Process-local store; each update cycle holds a single asyncio.Lock.

    Keeps the encoded document rather than live objects so callers never
    share mutable state with the store.
    """

    def __init__(self, markets: list[Market] | None = None) -> None:
        self._raw: str | None = encode_markets(markets) if markets else None
        self._lock = asyncio.Lock()

    async def load_all(self) -> list[Market]:
        return decode_markets(self._raw)

    async def save_all(self, markets: list[Market]) -> None:
        self._raw = encode_markets(markets)

    async def update(self, mutator: MarketMutator[T]) -> T:
        async with self._lock:
            markets = await self.load_all()
            result = mutator(markets)
            await self.save_all(markets)
            return result
