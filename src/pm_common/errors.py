"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Payment gate
  3xxx: Market (30xx lookup, 31xx validation, 32xx lifecycle)
  9xxx: System / upstream

Every error carries an optional ``details`` dict that the API layer returns
as ``data`` so clients can reconcile against the current state.
"""

from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details
        super().__init__(message)


class ValidationError(AppError):
    """Bad input shape or value — user-fixable."""

    def __init__(self, code: int, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code, message, 400, details)


class PreconditionError(AppError):
    """Lifecycle violation — details always include the market's current state."""

    def __init__(self, code: int, message: str, details: dict[str, Any]) -> None:
        super().__init__(code, message, 400, details)


# --- 1xxx: Payment gate ---

class PaymentRequiredError(AppError):
    def __init__(self, description: str, price: int, pay_to: str = "") -> None:
        details: dict[str, Any] = {
            "description": description,
            "pricing": {
                "amount": price,
                "formatted": f"{price / 1_000_000:.6f} STX",
                "sats": -(-price // 100),
            },
            "instructions": "Include X-Payment header with transaction ID",
        }
        if pay_to:
            details["pay_to"] = pay_to
        super().__init__(1101, "Payment required", 402, details)


# --- 30xx: Market lookup ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


# --- 31xx: Market validation ---

class InvalidTargetPriceError(ValidationError):
    def __init__(self, target_price: int) -> None:
        super().__init__(3101, f"Invalid target price: {target_price}")


class SettlementBlockTooSoonError(ValidationError):
    def __init__(self, settlement_block: int, minimum_block: int, current_block: int) -> None:
        super().__init__(
            3102,
            f"Settlement block too soon: {settlement_block} < minimum {minimum_block}",
            {"minimum_block": minimum_block, "current_block": current_block},
        )


class InvalidBetSideError(ValidationError):
    def __init__(self, side: str) -> None:
        super().__init__(3103, f"Invalid side: {side!r} (expected 'yes' or 'no')")


class BetAmountTooSmallError(ValidationError):
    def __init__(self, amount: int, minimum: int) -> None:
        super().__init__(
            3104,
            f"Minimum bet is {minimum} sats, got {amount}",
            {"minimum_amount": minimum},
        )


class MissingSenderError(ValidationError):
    def __init__(self) -> None:
        super().__init__(3105, "Sender address required")


# --- 32xx: Market lifecycle ---

class MarketAlreadySettledError(PreconditionError):
    def __init__(self, market_id: int, winning_side: str, settlement_price: int) -> None:
        super().__init__(
            3201,
            f"Market {market_id} already settled",
            {
                "market_id": market_id,
                "winning_side": winning_side,
                "settlement_price": settlement_price,
            },
        )


class BettingClosedError(PreconditionError):
    def __init__(self, market_id: int, current_block: int, settlement_block: int) -> None:
        super().__init__(
            3202,
            "Betting period ended",
            {
                "market_id": market_id,
                "current_block": current_block,
                "settlement_block": settlement_block,
            },
        )


class SettlementBlockNotReachedError(PreconditionError):
    def __init__(self, market_id: int, current_block: int, settlement_block: int) -> None:
        blocks_remaining = settlement_block - current_block
        super().__init__(
            3203,
            f"Settlement block not reached: {blocks_remaining} blocks remaining",
            {
                "market_id": market_id,
                "current_block": current_block,
                "settlement_block": settlement_block,
                "blocks_remaining": blocks_remaining,
            },
        )


class MarketNotSettledError(PreconditionError):
    def __init__(self, market_id: int) -> None:
        super().__init__(
            3204,
            "Market not yet settled",
            {"market_id": market_id, "settled": False},
        )


# --- 9xxx: System / upstream ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class RequestValidationFailed(AppError):
    def __init__(self, required: dict[str, str], errors: list[str]) -> None:
        super().__init__(
            9004,
            "Missing required fields",
            400,
            {"required": required, "errors": errors},
        )


class OracleUnavailableError(AppError):
    """Transient upstream failure — retryable, no state was mutated."""

    def __init__(self, feed: str) -> None:
        super().__init__(9101, f"Oracle unavailable: could not fetch {feed}", 500, {"feed": feed})


class StoreUnavailableError(AppError):
    """Market store unreachable or unreadable — retryable, no partial write."""

    def __init__(self, detail: str) -> None:
        super().__init__(9102, f"Market store unavailable: {detail}", 503)


class StoreConflictError(AppError):
    """Optimistic write lost the race too many times — retryable."""

    def __init__(self, attempts: int) -> None:
        super().__init__(
            9103,
            f"Market store busy: write conflicted {attempts} times",
            503,
            {"attempts": attempts},
        )
