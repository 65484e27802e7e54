# src/pm_market/domain/repository.py
"""Market store Protocol — dependency inversion for testability.

The whole market set lives under one key and is read and rewritten as a unit.
``update`` is the only safe way to mutate it: it runs one load-modify-save
cycle and serializes it against every other cycle on the same key.

The mutator receives the loaded list, mutates it in place and returns a
result. It may be invoked more than once (optimistic retry), so it must not
have side effects outside the list. Raising aborts the cycle with no write.
"""

from collections.abc import Callable
from typing import Protocol, TypeVar

from src.pm_market.domain.models import Market

T = TypeVar("T")

MarketMutator = Callable[[list[Market]], T]


class MarketStoreProtocol(Protocol):
    async def load_all(self) -> list[Market]: ...

    async def save_all(self, markets: list[Market]) -> None: ...

    async def update(self, mutator: MarketMutator[T]) -> T: ...
