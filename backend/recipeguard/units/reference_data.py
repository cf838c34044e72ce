"""Reference data — unit factors and ingredient keyword tables.

This is the encoded kitchen knowledge that keeps unit normalization deterministic.
All tables are immutable and loaded once at import time.
"""

from dataclasses import dataclass
from enum import Enum


class CanonicalUnit(str, Enum):
    GRAM = "g"
    MILLILITER = "ml"


@dataclass(frozen=True)
class UnitEntry:
    """One row of the unit table: informal unit name → metric factor."""

    unit_name: str
    canonical_unit: CanonicalUnit
    factor: float

    @property
    def is_volume(self) -> bool:
        return self.canonical_unit is CanonicalUnit.MILLILITER


# ──────────────────────────────────────────────────────────────────────
# UNIT TABLE (order matters: a singular form must come before its plural
# only when the singular pattern cannot swallow the plural)
# ──────────────────────────────────────────────────────────────────────

UNIT_TABLE: tuple[UnitEntry, ...] = (
    # Volume (→ ml)
    UnitEntry("teaspoon", CanonicalUnit.MILLILITER, 5),
    UnitEntry("teaspoons", CanonicalUnit.MILLILITER, 5),
    UnitEntry("tsp", CanonicalUnit.MILLILITER, 5),
    UnitEntry("tablespoon", CanonicalUnit.MILLILITER, 15),
    UnitEntry("tablespoons", CanonicalUnit.MILLILITER, 15),
    UnitEntry("tbsp", CanonicalUnit.MILLILITER, 15),
    UnitEntry("cup", CanonicalUnit.MILLILITER, 240),
    UnitEntry("cups", CanonicalUnit.MILLILITER, 240),
    UnitEntry("pint", CanonicalUnit.MILLILITER, 473),
    UnitEntry("pints", CanonicalUnit.MILLILITER, 473),
    UnitEntry("quart", CanonicalUnit.MILLILITER, 946),
    UnitEntry("quarts", CanonicalUnit.MILLILITER, 946),
    UnitEntry("gallon", CanonicalUnit.MILLILITER, 3785),
    UnitEntry("gallons", CanonicalUnit.MILLILITER, 3785),
    UnitEntry("fl oz", CanonicalUnit.MILLILITER, 30),
    UnitEntry("fluid ounce", CanonicalUnit.MILLILITER, 30),
    UnitEntry("fluid ounces", CanonicalUnit.MILLILITER, 30),
    # Weight (→ g)
    UnitEntry("ounce", CanonicalUnit.GRAM, 28.35),
    UnitEntry("oz", CanonicalUnit.GRAM, 28.35),
    UnitEntry("ounces", CanonicalUnit.GRAM, 28.35),
    UnitEntry("pound", CanonicalUnit.GRAM, 453.6),
    UnitEntry("lb", CanonicalUnit.GRAM, 453.6),
    UnitEntry("lbs", CanonicalUnit.GRAM, 453.6),
    UnitEntry("pounds", CanonicalUnit.GRAM, 453.6),
)

# Average density used for dry or unclassified ingredients measured by volume.
# A documented approximation (flour ~0.6, sugar ~0.85, salt ~1.2 g/ml).
DEFAULT_DRY_DENSITY = 0.7


# ──────────────────────────────────────────────────────────────────────
# INGREDIENT CLASSIFICATION
# ──────────────────────────────────────────────────────────────────────

LIQUID_KEYWORDS: frozenset[str] = frozenset({
    "water", "milk", "juice", "oil", "vinegar", "wine", "beer", "broth", "stock",
    "sauce", "soy sauce", "tamari", "lemon juice", "lime juice", "orange juice",
    "apple juice",
})

DRY_KEYWORDS: frozenset[str] = frozenset({
    "flour", "salt", "sugar", "pepper", "paprika", "cumin", "cinnamon", "turmeric",
    "oregano", "basil", "thyme", "rosemary", "sage", "garlic powder", "onion powder",
    "baking powder", "baking soda", "cocoa powder", "cornstarch", "starch", "rice",
    "pasta", "noodles", "oats", "grains", "beans", "lentils", "chickpeas", "nuts",
    "seeds", "almonds", "walnuts", "breadcrumbs", "bread", "croutons", "crackers",
    "chips",
})


# ──────────────────────────────────────────────────────────────────────
# SHOPPING REALISM
# ──────────────────────────────────────────────────────────────────────

# Units nobody buys in
UNREALISTIC_SHOPPING_UNITS: frozenset[str] = frozenset({
    "teaspoon", "teaspoons", "tsp", "tablespoon", "tablespoons", "tbsp",
    "pinch", "pinches", "dash", "dashes", "clove", "cloves", "slice", "slices",
    "leaf", "leaves",
})

# Words marking an item as already processed/prepared
PROCESSED_INDICATORS: tuple[str, ...] = (
    "cooked", "sliced", "diced", "chopped", "minced", "grated", "shredded", "melted",
)

SPICE_KEYWORDS: tuple[str, ...] = (
    "pepper", "salt", "paprika", "cumin", "cinnamon", "turmeric", "oregano", "basil",
    "thyme", "rosemary", "sage", "garlic powder", "onion powder", "spice",
)
CONDIMENT_KEYWORDS: tuple[str, ...] = (
    "oil", "vinegar", "soy sauce", "mustard", "ketchup", "mayonnaise",
)
BAKING_KEYWORDS: tuple[str, ...] = (
    "baking powder", "baking soda", "vanilla extract", "vanilla",
)
SWEETENER_KEYWORDS: tuple[str, ...] = (
    "maple syrup", "honey", "syrup",
)

PRODUCE_KEYWORDS: tuple[str, ...] = (
    "cucumber", "tomato", "lettuce", "pepper", "bell pepper", "onion", "garlic",
    "carrot", "celery", "broccoli", "cauliflower", "zucchini", "eggplant", "potato",
    "sweet potato", "avocado", "lemon", "lime", "orange", "apple", "banana",
)

MEAT_KEYWORDS: tuple[str, ...] = ("turkey", "chicken", "ham", "beef", "pork")

# Descriptors dropped when turning produce into a whole-item count
PRODUCE_DESCRIPTORS: frozenset[str] = frozenset({"fresh", "whole", "large", "small", "medium"})

# Realism thresholds (strictly below → unrealistic)
CONDIMENT_MIN_GRAMS = 50
CONDIMENT_MIN_MILLILITERS = 100
PRODUCE_MIN_AMOUNT = 100
CONVERTED_SPICE_MIN_AMOUNT = 10

# Standard purchase sizes
MEAT_PACKAGE_GRAMS = 200
OIL_BOTTLE_MILLILITERS = 250
BAKING_CONTAINER_GRAMS = 100
VANILLA_BOTTLE_MILLILITERS = 50
SYRUP_BOTTLE_MILLILITERS = 250
HONEY_JAR_GRAMS = 250
