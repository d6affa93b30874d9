"""
Coupon validation — eligibility checks against live usage.

A coupon is usable only while it is active, unexpired, its minimum
purchase is met and it sits under both usage limits. The first failing
check raises; nothing is partially applied.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from orderflow.domain import Cents, Coupon, UserId
from orderflow.errors import NotFoundError, ValidationError
from orderflow.stores import UnitOfWork

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_codes(codes: Iterable[str | None]) -> list[str]:
    """Trim, uppercase and de-duplicate, keeping first-seen order."""
    seen: dict[str, None] = {}
    for code in codes:
        if code is None:
            continue
        normalized = code.strip().upper()
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


class CouponValidator:
    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    async def validate(
        self,
        uow: UnitOfWork,
        code: str,
        user_id: UserId,
        basis_amount: Cents,
        *,
        check_user_limit: bool = True,
    ) -> Coupon:
        coupon = await uow.coupons.find_by_code(code)
        if coupon is None:
            raise NotFoundError(f'Cupom "{code}" inválido ou não encontrado.')

        if not coupon.is_active:
            raise ValidationError(f'O cupom "{coupon.code}" foi desativado.')

        if coupon.is_expired(self._clock()):
            raise ValidationError(f'O cupom "{coupon.code}" expirou.')

        if basis_amount < coupon.min_purchase_value_in_cents:
            minimum = coupon.min_purchase_value_in_cents / 100
            raise ValidationError(
                f'O cupom "{coupon.code}" requer um valor mínimo de compra de R$ {minimum:.2f}.'
            )

        if coupon.usage_limit_global:
            used = await uow.coupons.count_usage_global(coupon.id)
            if used >= coupon.usage_limit_global:
                raise ValidationError(
                    f'O cupom "{coupon.code}" atingiu o limite máximo de utilizações.'
                )

        if check_user_limit and coupon.usage_limit_per_user:
            used = await uow.coupons.count_usage_by_user(coupon.id, user_id)
            if used >= coupon.usage_limit_per_user:
                raise ValidationError(
                    f'Você já atingiu o limite de uso para o cupom "{coupon.code}".'
                )

        return coupon

    async def validate_multiple(
        self,
        uow: UnitOfWork,
        codes: Iterable[str | None],
        user_id: UserId,
        basis_amount: Cents,
        *,
        check_user_limit: bool = True,
    ) -> list[Coupon]:
        """
        Validate every normalized code, raising on the first failure.

        `check_user_limit=False` skips the per-user limit; only guest
        simulations pass it.
        """
        coupons = [
            await self.validate(
                uow, code, user_id, basis_amount, check_user_limit=check_user_limit
            )
            for code in normalize_codes(codes)
        ]
        if coupons:
            logger.debug(
                "Validated coupons %s for %s", [c.code for c in coupons], user_id
            )
        return coupons


__all__ = ("CouponValidator", "normalize_codes")
