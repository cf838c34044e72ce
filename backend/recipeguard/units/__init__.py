"""Unit conversion — metric normalization and realistic shopping amounts."""

from recipeguard.units.engine import (
    ConversionConfig,
    IngredientConversion,
    ShoppingConversion,
    UnitConversionEngine,
    format_amount,
    strip_quantity,
)
from recipeguard.units.reference_data import UNIT_TABLE, CanonicalUnit, UnitEntry

__all__ = [
    "ConversionConfig",
    "IngredientConversion",
    "ShoppingConversion",
    "UnitConversionEngine",
    "format_amount",
    "strip_quantity",
    "UNIT_TABLE",
    "CanonicalUnit",
    "UnitEntry",
]
