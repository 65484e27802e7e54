"""x402 payment gate — FastAPI dependency.

The presented X-Payment token is treated as pre-validated: the gate only
checks that one was supplied. Verification of the payment transaction itself
happens upstream.
"""

from typing import Annotated

from fastapi import Header

from config.settings import settings
from src.pm_common.errors import PaymentRequiredError


async def require_payment(
    x_payment: Annotated[str | None, Header()] = None,
) -> str:
    """Return the payment token or raise 402 with pricing details."""
    if not x_payment:
        raise PaymentRequiredError(
            "Create prediction market", settings.CREATE_MARKET_PRICE, settings.PAYMENT_ADDRESS
        )
    return x_payment
