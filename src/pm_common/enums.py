"""Global enums — values are the wire/persisted strings."""

from enum import Enum


class Side(str, Enum):
    YES = "yes"
    NO = "no"


class MarketStatus(str, Enum):
    ACTIVE = "active"
    PENDING_SETTLEMENT = "pending_settlement"
    SETTLED = "settled"
    UNKNOWN = "unknown"  # block feed unavailable, lock state cannot be derived


class StoreBackend(str, Enum):
    REDIS = "redis"
    MEMORY = "memory"
