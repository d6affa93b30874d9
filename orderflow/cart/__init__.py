"""Cart — checkout view (CartReader) and line maintenance (CartService)."""

from orderflow.cart._reader import CartReader
from orderflow.cart._service import CartService

__all__ = ("CartReader", "CartService")
