"""
Shipping recalculation — server-side cost for the method the client chose.

The client only ever names a method; its price comes from the oracle.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from orderflow.domain import CartLine, RateItem, ShippingAddress, ShippingQuote
from orderflow.errors import ServiceError, ValidationError
from orderflow.stores import ShippingRateOracle

logger = logging.getLogger(__name__)


class ShippingRecalculator:
    def __init__(self, oracle: ShippingRateOracle, *, timeout: float | None = 10.0) -> None:
        self.oracle = oracle
        self.timeout = timeout

    async def recalculate(
        self,
        items: Sequence[CartLine],
        address: ShippingAddress,
        requested_method: str,
    ) -> ShippingQuote:
        postal_code = address.postal_code
        if postal_code is None:
            raise ValidationError("O CEP do endereço de entrega é obrigatório.")

        rate_items = [RateItem(line.product_id, line.quantity) for line in items]
        try:
            async with asyncio.timeout(self.timeout):
                options = await self.oracle.quote(postal_code, rate_items)
        except TimeoutError as exc:
            logger.warning("Rate quote for %s timed out after %ss", postal_code, self.timeout)
            raise ServiceError(
                "O cálculo de frete demorou demais para responder.",
                action="Tente novamente em alguns instantes.",
                status_code=503,
            ) from exc

        wanted = requested_method.strip().upper()
        for option in options:
            if option.type.upper() == wanted:
                return ShippingQuote(cost_in_cents=option.price_in_cents, details=option)

        raise ValidationError(
            f'O método de envio "{requested_method}" não está disponível para este endereço.'
        )


__all__ = ("ShippingRecalculator",)
