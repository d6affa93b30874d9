"""
Unit of work — one AsyncSession transaction with all stores bound to it.

Usage:

    uow_factory = SQLAlchemyUnitOfWorkFactory(session_factory)

    async with uow_factory() as uow:
        lines = await uow.carts.get_items(user_id)
        ...
        await uow.commit()

Leaving the block without commit discards the transaction. Any exception
rolls back first; SQLAlchemy errors are translated into the domain
taxonomy on the way out.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderflow.db._stores import (
    SQLAlchemyCartStore,
    SQLAlchemyCouponStore,
    SQLAlchemyOrderStore,
    SQLAlchemyProductStore,
)
from orderflow.errors import translate_storage_error

logger = logging.getLogger(__name__)


class SQLAlchemyUnitOfWork:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.products = SQLAlchemyProductStore(session)
        self.carts = SQLAlchemyCartStore(session)
        self.coupons = SQLAlchemyCouponStore(session)
        self.orders = SQLAlchemyOrderStore(session)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


class SQLAlchemyUnitOfWorkFactory:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    @asynccontextmanager
    async def __call__(self) -> AsyncIterator[SQLAlchemyUnitOfWork]:
        async with self.session_factory() as session:
            uow = SQLAlchemyUnitOfWork(session)
            try:
                yield uow
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.warning("Transaction rolled back after storage error: %s", exc)
                raise translate_storage_error(exc) from exc
            except BaseException:
                await session.rollback()
                raise


__all__ = ("SQLAlchemyUnitOfWork", "SQLAlchemyUnitOfWorkFactory")
