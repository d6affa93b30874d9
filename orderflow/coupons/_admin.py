"""Coupon administration."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import UTC, datetime

from orderflow.domain import Coupon, CouponDraft
from orderflow.errors import ValidationError
from orderflow.stores import UnitOfWork

logger = logging.getLogger(__name__)

_NON_NEGATIVE_FIELDS = {
    "max_discount_in_cents": "O desconto máximo não pode ser negativo.",
    "min_purchase_value_in_cents": "O valor mínimo de compra não pode ser negativo.",
    "usage_limit_per_user": "O limite de uso por usuário não pode ser negativo.",
    "usage_limit_global": "O limite global de uso não pode ser negativo.",
}


def _as_utc(value: datetime | None) -> datetime | None:
    """Naive expiry dates are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


async def create_coupon(uow: UnitOfWork, draft: CouponDraft) -> Coupon:
    code = draft.code.strip().upper()
    if not code:
        raise ValidationError("O código do cupom é obrigatório.")

    if not 0 < draft.discount_percentage <= 100:
        raise ValidationError("O percentual de desconto deve estar entre 1 e 100.")

    for field, message in _NON_NEGATIVE_FIELDS.items():
        value = getattr(draft, field)
        if value is not None and value < 0:
            raise ValidationError(message)

    if await uow.coupons.find_by_code(code) is not None:
        raise ValidationError("Já existe um cupom com este código.")

    coupon = await uow.coupons.add(
        replace(draft, code=code, expiration_date=_as_utc(draft.expiration_date))
    )
    logger.info("Coupon %s created (id=%s)", coupon.code, coupon.id)
    return coupon


__all__ = ("create_coupon",)
