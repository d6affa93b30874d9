"""
Shipping — rate oracles and server-side cost recalculation.

    recalculator = ShippingRecalculator(FlatRateOracle(), timeout=5.0)
    quote = await recalculator.recalculate(lines, address, "PAC")
"""

from orderflow.shipping._oracles import (
    DEFAULT_OPTIONS,
    FlatRateOracle,
    HTTPRateOracle,
    option_from_payload,
)
from orderflow.shipping._recalculate import ShippingRecalculator

__all__ = (
    "DEFAULT_OPTIONS",
    "FlatRateOracle",
    "HTTPRateOracle",
    "option_from_payload",
    "ShippingRecalculator",
)
