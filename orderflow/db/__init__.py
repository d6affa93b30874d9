"""
Persistence — SQLAlchemy async implementations of the store protocols.

    session_factory, engine = await create_database()
    uow = SQLAlchemyUnitOfWorkFactory(session_factory)
"""

from orderflow.db._database import create_database
from orderflow.db._stores import (
    SQLAlchemyCartStore,
    SQLAlchemyCouponStore,
    SQLAlchemyOrderStore,
    SQLAlchemyProductStore,
)
from orderflow.db._tables import (
    Base,
    CartItemTable,
    CartTable,
    CouponTable,
    OrderItemTable,
    OrderTable,
    ProductTable,
)
from orderflow.db._uow import SQLAlchemyUnitOfWork, SQLAlchemyUnitOfWorkFactory

__all__ = (
    # Setup
    "create_database",
    # Tables
    "Base",
    "ProductTable",
    "CartTable",
    "CartItemTable",
    "CouponTable",
    "OrderTable",
    "OrderItemTable",
    # Stores
    "SQLAlchemyProductStore",
    "SQLAlchemyCartStore",
    "SQLAlchemyCouponStore",
    "SQLAlchemyOrderStore",
    # Unit of work
    "SQLAlchemyUnitOfWork",
    "SQLAlchemyUnitOfWorkFactory",
)
