"""
Rate oracles — where shipping options come from.

FlatRateOracle serves a fixed option list (development and tests).
HTTPRateOracle asks an external rate service:

    POST {url}
    {"postal_code": "01001000", "items": [{"product_id": 1, "quantity": 2}]}

    200 [{"type": "PAC", "price_in_cents": 2100, "days": 5, ...}, ...]

The response may also wrap the list as {"options": [...]}.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from orderflow.domain import RateItem, ShippingOption
from orderflow.errors import ServiceError

logger = logging.getLogger(__name__)

_OPTION_KEYS = frozenset({"type", "price_in_cents", "name", "days", "carrier"})


DEFAULT_OPTIONS: tuple[ShippingOption, ...] = (
    ShippingOption(type="PICKUP", price_in_cents=0, name="Retirada no Local", days=3),
    ShippingOption(
        type="PAC",
        price_in_cents=2100,
        name="PAC (Econômica)",
        days=5,
        carrier="Correios",
    ),
)


def option_from_payload(payload: Mapping[str, Any]) -> ShippingOption:
    return ShippingOption(
        type=str(payload["type"]),
        price_in_cents=int(payload["price_in_cents"]),
        name=payload.get("name"),
        days=payload.get("days"),
        carrier=payload.get("carrier"),
        extra={k: v for k, v in payload.items() if k not in _OPTION_KEYS},
    )


class FlatRateOracle:
    def __init__(self, options: Sequence[ShippingOption] = DEFAULT_OPTIONS) -> None:
        self.options = tuple(options)

    async def quote(self, postal_code: str, items: Sequence[RateItem]) -> list[ShippingOption]:
        return list(self.options)


class HTTPRateOracle:
    def __init__(
        self,
        url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def quote(self, postal_code: str, items: Sequence[RateItem]) -> list[ShippingOption]:
        body = {
            "postal_code": postal_code,
            "items": [{"product_id": i.product_id, "quantity": i.quantity} for i in items],
        }
        try:
            response = await self._client.post(self.url, json=body)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Rate service request failed: %s", exc)
            raise ServiceError(
                "Não foi possível calcular o frete no momento.",
                action="Tente novamente em alguns instantes.",
                status_code=503,
            ) from exc

        try:
            payload = response.json()
            if isinstance(payload, Mapping):
                payload = payload.get("options", [])
            return [option_from_payload(entry) for entry in payload]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Rate service returned an unreadable payload: %.200s", response.text)
            raise ServiceError(
                "O serviço de frete retornou uma resposta inválida.",
                status_code=503,
            ) from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ("DEFAULT_OPTIONS", "option_from_payload", "FlatRateOracle", "HTTPRateOracle")
