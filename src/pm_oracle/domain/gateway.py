# src/pm_oracle/domain/gateway.py
"""Oracle gateway Protocol.

Both reads are idempotent and side-effect free. They never raise: an
unavailable feed is reported as None, which callers must check explicitly
(a genuine reading is always a positive int).
"""

from typing import Protocol


class OracleGatewayProtocol(Protocol):
    async def current_block(self) -> int | None:
        """Latest Bitcoin block height, or None if the feed is unavailable."""
        ...

    async def current_price(self) -> int | None:
        """BTC/USD spot price in cents, or None if the feed is unavailable."""
        ...
