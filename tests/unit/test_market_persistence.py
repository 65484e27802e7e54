# tests/unit/test_market_persistence.py
"""Unit tests for the market stores and the persisted document format."""
import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import make_market
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import WatchError

from src.pm_common.enums import Side
from src.pm_common.errors import (
    MarketNotFoundError,
    StoreConflictError,
    StoreUnavailableError,
)
from src.pm_market.infrastructure.persistence import (
    InMemoryMarketStore,
    RedisMarketStore,
    decode_markets,
    encode_markets,
)


class _FakePipeline:
    """Just enough of redis.asyncio Pipeline for WATCH/MULTI/EXEC cycles."""

    def __init__(self, redis: "_FakeRedis") -> None:
        self._redis = redis
        self._pending: str | None = None

    async def __aenter__(self) -> "_FakePipeline":
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    async def watch(self, key: str) -> None:
        self._redis.watch_calls += 1

    async def get(self, key: str) -> str | None:
        return self._redis.raw

    def multi(self) -> None:
        pass

    def set(self, key: str, value: str) -> "_FakePipeline":
        self._pending = value
        return self

    async def execute(self) -> list[bool]:
        if self._redis.on_execute:
            # A concurrent writer touches the key between WATCH and EXEC.
            hook = self._redis.on_execute.pop(0)
            hook(self._redis)
            raise WatchError("Watched variable changed.")
        self._redis.raw = self._pending
        return [True]


class _FakeRedis:
    def __init__(self, raw: str | None = None) -> None:
        self.raw = raw
        self.watch_calls = 0
        self.on_execute: list = []

    def pipeline(self, transaction: bool = True) -> _FakePipeline:
        return _FakePipeline(self)

    async def get(self, key: str) -> str | None:
        return self.raw

    async def set(self, key: str, value: str) -> None:
        self.raw = value


def _append_market(markets):
    m = make_market(id=len(markets))
    markets.append(m)
    return m


class TestDocumentFormat:
    def test_camel_case_field_names(self) -> None:
        raw = encode_markets([make_market(yes_pool=1500)])
        rec = json.loads(raw)[0]
        assert set(rec) == {
            "id", "creator", "targetPrice", "settlementBlock", "yesPool", "noPool",
            "settled", "winningSide", "settlementPrice", "description", "createdAt",
        }
        assert rec["yesPool"] == 1500
        assert rec["winningSide"] is None

    def test_round_trip_keeps_outcome(self) -> None:
        m = make_market(settled=True, winning_side=Side.NO, settlement_price=4_900_000)
        [decoded] = decode_markets(encode_markets([m]))
        assert decoded == m

    def test_missing_key_is_empty(self) -> None:
        assert decode_markets(None) == []

    def test_legacy_boolean_outcome(self) -> None:
        raw = json.dumps([{
            "id": 0, "creator": "demo", "targetPrice": 100, "settlementBlock": 10,
            "yesPool": 50000, "noPool": 30000, "settled": True, "winningSide": True,
            "settlementPrice": 120, "description": "d",
            "createdAt": "2026-01-01T00:00:00.000Z",
        }])
        [m] = decode_markets(raw)
        assert m.winning_side is Side.YES

    def test_corrupt_document_raises(self) -> None:
        with pytest.raises(StoreUnavailableError):
            decode_markets("{not json")

    def test_wrong_shape_raises(self) -> None:
        with pytest.raises(StoreUnavailableError):
            decode_markets(json.dumps({"markets": []}))


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_empty_by_default(self) -> None:
        assert await InMemoryMarketStore().load_all() == []

    @pytest.mark.asyncio
    async def test_update_persists(self) -> None:
        store = InMemoryMarketStore()
        created = await store.update(_append_market)
        assert created.id == 0
        assert [m.id for m in await store.load_all()] == [0]

    @pytest.mark.asyncio
    async def test_aborted_update_writes_nothing(self) -> None:
        store = InMemoryMarketStore([make_market()])

        def _fail(markets):
            markets.append(make_market(id=1))
            raise MarketNotFoundError(7)

        with pytest.raises(MarketNotFoundError):
            await store.update(_fail)
        assert len(await store.load_all()) == 1

    @pytest.mark.asyncio
    async def test_loaded_markets_are_copies(self) -> None:
        store = InMemoryMarketStore([make_market()])
        loaded = await store.load_all()
        loaded[0].yes_pool = 999
        assert (await store.load_all())[0].yes_pool == 0

    @pytest.mark.asyncio
    async def test_concurrent_updates_are_serialized(self) -> None:
        store = InMemoryMarketStore()
        created = await asyncio.gather(*(store.update(_append_market) for _ in range(20)))
        assert sorted(m.id for m in created) == list(range(20))
        assert len(await store.load_all()) == 20


class TestRedisStore:
    @pytest.mark.asyncio
    async def test_load_all_decodes(self) -> None:
        redis = _FakeRedis(encode_markets([make_market(id=0), make_market(id=1)]))
        markets = await RedisMarketStore(redis).load_all()
        assert [m.id for m in markets] == [0, 1]

    @pytest.mark.asyncio
    async def test_save_all_overwrites(self) -> None:
        redis = _FakeRedis()
        await RedisMarketStore(redis).save_all([make_market()])
        assert len(json.loads(redis.raw)) == 1

    @pytest.mark.asyncio
    async def test_unreachable_is_not_empty(self) -> None:
        redis = MagicMock()
        redis.get = AsyncMock(side_effect=RedisConnectionError("refused"))
        with pytest.raises(StoreUnavailableError):
            await RedisMarketStore(redis).load_all()

    @pytest.mark.asyncio
    async def test_update_writes_once(self) -> None:
        redis = _FakeRedis()
        created = await RedisMarketStore(redis).update(_append_market)
        assert created.id == 0
        assert redis.watch_calls == 1
        assert [m.id for m in decode_markets(redis.raw)] == [0]

    @pytest.mark.asyncio
    async def test_conflict_retries_against_fresh_snapshot(self) -> None:
        redis = _FakeRedis()

        def _concurrent_create(r: _FakeRedis) -> None:
            r.raw = encode_markets([make_market(id=0, creator="other")])

        redis.on_execute.append(_concurrent_create)
        created = await RedisMarketStore(redis).update(_append_market)

        # The losing writer re-ran on the new snapshot: no duplicate id.
        assert created.id == 1
        assert redis.watch_calls == 2
        markets = decode_markets(redis.raw)
        assert [m.id for m in markets] == [0, 1]
        assert markets[0].creator == "other"

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self) -> None:
        redis = _FakeRedis()
        redis.on_execute.extend([lambda r: None] * 3)
        store = RedisMarketStore(redis, max_retries=3)
        with pytest.raises(StoreConflictError) as exc_info:
            await store.update(_append_market)
        assert exc_info.value.http_status == 503
        assert redis.raw is None

    @pytest.mark.asyncio
    async def test_connection_error_during_update(self) -> None:
        pipe = MagicMock()
        pipe.__aenter__ = AsyncMock(return_value=pipe)
        pipe.__aexit__ = AsyncMock(return_value=None)
        pipe.watch = AsyncMock(side_effect=RedisConnectionError("reset"))
        redis = MagicMock()
        redis.pipeline.return_value = pipe

        with pytest.raises(StoreUnavailableError):
            await RedisMarketStore(redis).update(_append_market)
