"""Unit Conversion Engine — metric normalization and shopping realism.

Pure and deterministic: the same line always yields the same result, and both
normalizers are idempotent (running them on their own output changes nothing).
Malformed or unknown quantities are left untouched, never raised on.

Usage:
    engine = UnitConversionEngine()
    engine.normalize_ingredient_line("2 cups flour").converted_text   # "336g flour"
    engine.normalize_shopping_line("1 clove garlic").converted_text   # "1 head garlic"
"""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from recipeguard.config import Settings, get_settings
from recipeguard.units.reference_data import (
    BAKING_CONTAINER_GRAMS,
    BAKING_KEYWORDS,
    CONDIMENT_KEYWORDS,
    CONDIMENT_MIN_GRAMS,
    CONDIMENT_MIN_MILLILITERS,
    CONVERTED_SPICE_MIN_AMOUNT,
    DEFAULT_DRY_DENSITY,
    DRY_KEYWORDS,
    HONEY_JAR_GRAMS,
    LIQUID_KEYWORDS,
    MEAT_KEYWORDS,
    MEAT_PACKAGE_GRAMS,
    OIL_BOTTLE_MILLILITERS,
    PROCESSED_INDICATORS,
    PRODUCE_DESCRIPTORS,
    PRODUCE_KEYWORDS,
    PRODUCE_MIN_AMOUNT,
    SPICE_KEYWORDS,
    SWEETENER_KEYWORDS,
    SYRUP_BOTTLE_MILLILITERS,
    UNIT_TABLE,
    UNREALISTIC_SHOPPING_UNITS,
    VANILLA_BOTTLE_MILLILITERS,
    UnitEntry,
)

_AMOUNT = r"(\d+(?:\.\d+)?)"

# Units a shopping line may already carry (metric, counts, and the unrealistic ones)
_SHOPPING_UNIT_RE = re.compile(
    rf"^{_AMOUNT}\s*(g|ml|pieces?|heads?|bulbs?|cloves?|slices?|leaf|leaves|"
    r"teaspoons?|tsp|tablespoons?|tbsp|pinch(?:es)?|dash(?:es)?)\s+(.+)$",
    re.IGNORECASE,
)

_PROCESSED_AMOUNT_RE = re.compile(
    rf"^{_AMOUNT}\s*(g|ml|pieces?|heads?|bulbs?|loaves|loaf|rolls?|teaspoons?|tsp|"
    r"tablespoons?|tbsp|cloves?|slices?|leaf|leaves|pinch(?:es)?|dash(?:es)?)\s+(.+)$",
    re.IGNORECASE,
)

_PROCESSED_RE = re.compile(rf"\b(?:{'|'.join(PROCESSED_INDICATORS)})\b", re.IGNORECASE)
_SLICES_RE = re.compile(r"\bslices?\b", re.IGNORECASE)
_LEAVES_RE = re.compile(r"\b(?:leaf|leaves)\b", re.IGNORECASE)
_MEAT_CUTS_RE = re.compile(r"\b(?:slices?|breast|thigh|drumstick)s?\b", re.IGNORECASE)

_QUANTITY_UNITS = sorted(
    {e.unit_name for e in UNIT_TABLE}
    | {"g", "kg", "ml", "l", "pcs", "pc", "piece", "pieces", "head", "heads", "bulb", "bulbs",
       "clove", "cloves", "slice", "slices", "bunch", "bunches", "can", "cans", "loaf", "loaves",
       "pinch", "pinches", "dash", "dashes", "leaf", "leaves"},
    key=len,
    reverse=True,
)
_QUANTITY_PREFIX_RE = re.compile(
    r"^\s*\d+(?:[.,/]\d+)?\s*(?:(?:"
    + "|".join(r"\s+".join(map(re.escape, u.split())) for u in _QUANTITY_UNITS)
    + r")\b\.?)?\s*(?:of\s+)?",
    re.IGNORECASE,
)

_MAX_SHOPPING_PASSES = 4


@dataclass(frozen=True)
class ConversionConfig:
    """Immutable conversion configuration, loaded once and injected into the engine."""

    unit_table: tuple[UnitEntry, ...] = UNIT_TABLE
    dry_density: float = DEFAULT_DRY_DENSITY
    liquid_keywords: frozenset[str] = LIQUID_KEYWORDS
    dry_keywords: frozenset[str] = DRY_KEYWORDS

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ConversionConfig":
        settings = settings or get_settings()
        return cls(dry_density=settings.DRY_INGREDIENT_DENSITY)


@dataclass(frozen=True)
class IngredientConversion:
    converted_text: str
    changed: bool
    original_unit: Optional[str] = None


@dataclass(frozen=True)
class ShoppingConversion:
    converted_text: str
    changed: bool
    fixed: bool = False  # True when the amount was made realistic, not just converted
    issue: Optional[str] = None


def format_amount(value: float) -> str:
    """Round half-up to one decimal and drop a trailing ``.0``."""
    rounded = Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    if rounded == rounded.to_integral_value():
        return str(int(rounded))
    return str(rounded)


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Word-level keyword match that tolerates simple plurals (tomato → tomatoes)."""
    lowered = text.lower()
    return any(
        re.search(rf"\b{re.escape(kw)}(?:e?s)?\b", lowered) for kw in keywords
    )


def strip_quantity(text: str) -> str:
    """Drop a leading amount and unit: ``"200g flour"`` → ``"flour"``."""
    return _QUANTITY_PREFIX_RE.sub("", text, count=1).strip()


def strip_processed(text: str) -> str:
    """Remove processed/prepared indicators and collapse whitespace."""
    return " ".join(_PROCESSED_RE.sub(" ", text).split())


def is_spice(name: str) -> bool:
    return contains_keyword(name, SPICE_KEYWORDS)


def is_spice_or_condiment(name: str) -> bool:
    """Spices, condiments, baking items and sweeteners, all sold in standard containers."""
    return (
        is_spice(name)
        or contains_keyword(name, CONDIMENT_KEYWORDS)
        or contains_keyword(name, BAKING_KEYWORDS)
        or contains_keyword(name, SWEETENER_KEYWORDS)
    )


def is_produce(name: str) -> bool:
    return contains_keyword(name, PRODUCE_KEYWORDS)


def is_meat(name: str) -> bool:
    return contains_keyword(name, MEAT_KEYWORDS)


class UnitConversionEngine:
    """Converts informal quantities to metric and shopping lines to realistic purchases."""

    def __init__(self, config: Optional[ConversionConfig] = None):
        self.config = config or ConversionConfig()
        self._unit_patterns = tuple(
            (
                entry,
                re.compile(
                    rf"^{_AMOUNT}\s+"
                    + r"\s+".join(map(re.escape, entry.unit_name.split()))
                    + r"(?:\s+(.*))?$",
                    re.IGNORECASE | re.DOTALL,
                ),
            )
            for entry in self.config.unit_table
        )

    # ── Classification ──

    def classify_ingredient(self, name: str) -> str:
        """Return ``"liquid"``, ``"dry"`` or ``"unclassified"``. Liquid wins over dry."""
        lowered = name.lower()
        if any(kw in lowered for kw in self.config.liquid_keywords):
            return "liquid"
        if any(kw in lowered for kw in self.config.dry_keywords):
            return "dry"
        return "unclassified"

    # ── Ingredient normalization ──

    def normalize_ingredient_line(self, text: str) -> IngredientConversion:
        """Convert a leading informal quantity (cups, oz, ...) to metric."""
        matched = self._match_unit(text)
        if matched is None:
            return IngredientConversion(converted_text=text, changed=False)

        entry, amount, name = matched
        value, unit = self._to_metric(amount, entry, name)
        converted = f"{format_amount(value)}{unit}"
        if name:
            converted = f"{converted} {name}"
        return IngredientConversion(converted_text=converted, changed=True, original_unit=entry.unit_name)

    def _match_unit(self, text: str) -> Optional[tuple[UnitEntry, float, str]]:
        stripped = text.strip()
        for entry, pattern in self._unit_patterns:
            match = pattern.match(stripped)
            if match:
                try:
                    amount = float(match.group(1))
                except ValueError:
                    return None
                return entry, amount, (match.group(2) or "").strip()
        return None

    def _to_metric(self, amount: float, entry: UnitEntry, name: str) -> tuple[float, str]:
        if not entry.is_volume:
            return amount * entry.factor, "g"
        if self.classify_ingredient(name) == "liquid":
            return amount * entry.factor, "ml"
        return amount * entry.factor * self.config.dry_density, "g"

    # ── Shopping normalization ──

    def normalize_shopping_line(self, text: str) -> ShoppingConversion:
        """Make a shopping line metric and realistic to buy.

        Rules are re-applied until the line is stable, so the result is always
        a fixed point of this function.
        """
        current = text
        fixed = False
        issues: list[str] = []

        for _ in range(_MAX_SHOPPING_PASSES):
            step = self._shopping_pass(current)
            if not step.changed or step.converted_text.strip() == current.strip():
                break
            fixed = fixed or step.fixed
            if step.issue and step.issue not in issues:
                issues.append(step.issue)
            current = step.converted_text

        if current.strip() == text.strip():
            return ShoppingConversion(converted_text=text, changed=False)
        return ShoppingConversion(
            converted_text=current,
            changed=True,
            fixed=fixed,
            issue="; ".join(issues) or None,
        )

    def _shopping_pass(self, text: str) -> ShoppingConversion:
        item = text.strip()
        if not item:
            return ShoppingConversion(converted_text=text, changed=False)

        # 1. Processed/prepared items
        if _PROCESSED_RE.search(item):
            return self._reroute_processed(item)

        # 2-4. Lines already carrying a shopping unit
        match = _SHOPPING_UNIT_RE.match(item)
        if match:
            result = self._check_shopping_unit(*match.groups())
            return result or ShoppingConversion(converted_text=text, changed=False)

        # 5. Informal units
        matched = self._match_unit(item)
        if matched is None:
            return ShoppingConversion(converted_text=text, changed=False)

        entry, amount, name = matched
        name = name.lower()
        value, unit = self._to_metric(amount, entry, name)
        if value < CONVERTED_SPICE_MIN_AMOUNT and is_spice_or_condiment(name):
            return self._fixed(
                self.realistic_purchase(name),
                f"converted amount ({format_amount(value)}{unit}) is too small for realistic purchase",
            )
        converted = f"{format_amount(value)}{unit} {name}".strip()
        return ShoppingConversion(converted_text=converted, changed=True, fixed=False, issue="uses non-metric unit")

    def _check_shopping_unit(self, amount_str: str, unit: str, name: str) -> Optional[ShoppingConversion]:
        unit = unit.lower()
        name = name.strip().lower()
        amount = float(amount_str)

        if unit in UNREALISTIC_SHOPPING_UNITS:
            if unit in ("clove", "cloves") and "garlic" in name:
                return self._fixed("1 head garlic", "uses 'clove' which is not a realistic purchase unit")
            if unit in ("slice", "slices") and "bread" in name:
                return self._fixed(
                    self.realistic_purchase(name), "uses 'slice' which is not a realistic purchase unit"
                )
            if unit in ("leaf", "leaves") and "lettuce" in name:
                return self._fixed("1 head lettuce", "uses 'leaves' which is not a realistic purchase unit")
            return self._fixed(self.realistic_purchase(name), f"uses unrealistic unit '{unit}' for shopping")

        if unit in ("g", "ml"):
            too_small = (unit == "g" and amount < CONDIMENT_MIN_GRAMS) or (
                unit == "ml" and amount < CONDIMENT_MIN_MILLILITERS
            )
            if too_small and is_spice_or_condiment(name):
                return self._fixed(
                    self.realistic_purchase(name),
                    f"has unrealistic small amount ({amount_str}{unit}) for shopping",
                )
            if amount < PRODUCE_MIN_AMOUNT and is_produce(name):
                return self._fixed(
                    self.realistic_produce_purchase(name),
                    f"has unrealistic small amount ({amount_str}{unit}) for produce",
                )
        return None

    def _reroute_processed(self, item: str) -> ShoppingConversion:
        issue = "contains processed/prepared indicator (cooked, sliced, etc.)"
        match = _PROCESSED_AMOUNT_RE.match(item)

        if match:
            amount_str, unit, name = match.groups()
            unit = unit.lower()
            cleaned = strip_processed(name).lower()
            if not cleaned:
                converted = item
            elif unit in UNREALISTIC_SHOPPING_UNITS:
                converted = self.realistic_purchase(cleaned)
            elif is_meat(cleaned):
                converted = f"{MEAT_PACKAGE_GRAMS}g {' '.join(_SLICES_RE.sub(' ', cleaned).split())}"
            elif is_produce(cleaned) and float(amount_str) < PRODUCE_MIN_AMOUNT:
                converted = self.realistic_produce_purchase(cleaned)
            else:
                converted = f"{_quantity(amount_str, unit)} {cleaned}"
            return self._fixed(converted, issue)

        cleaned = strip_processed(item).lower()
        if not cleaned or cleaned[0].isdigit():
            # Informal units left over, the next pass converts them
            converted = cleaned or item
        elif is_produce(cleaned):
            converted = self.realistic_produce_purchase(cleaned)
        elif is_meat(cleaned):
            converted = f"{MEAT_PACKAGE_GRAMS}g {' '.join(_MEAT_CUTS_RE.sub(' ', cleaned).split())}"
        else:
            converted = cleaned
        return self._fixed(converted, issue)

    @staticmethod
    def _fixed(converted: str, issue: str) -> ShoppingConversion:
        return ShoppingConversion(converted_text=converted, changed=True, fixed=True, issue=issue)

    # ── Realistic purchase rules ──

    def realistic_purchase(self, item_name: str) -> str:
        """Map an item to how it is actually sold (container, bottle, head, loaf, pack)."""
        name = item_name.split(" or ")[0].strip().lower()

        if is_spice(name):
            return " ".join(name.split()[-2:])
        if "baking powder" in name or "baking soda" in name:
            return f"{BAKING_CONTAINER_GRAMS}g {name}"
        if "vanilla" in name:
            return f"{VANILLA_BOTTLE_MILLILITERS}ml vanilla extract"
        if "maple syrup" in name:
            return f"{SYRUP_BOTTLE_MILLILITERS}ml maple syrup"
        if "honey" in name:
            return f"{HONEY_JAR_GRAMS}g honey"
        if contains_keyword(name, ("oil", "vinegar")):
            return f"{OIL_BOTTLE_MILLILITERS}ml {strip_processed(name)}"
        if "garlic" in name:
            return "1 head garlic"
        if "bread" in name:
            return f"1 loaf {' '.join(_SLICES_RE.sub(' ', name).split())}"
        if is_meat(name):
            meat = " ".join(_SLICES_RE.sub(" ", strip_processed(name)).split())
            return f"{MEAT_PACKAGE_GRAMS}g {meat}"
        return name

    def realistic_produce_purchase(self, item_name: str) -> str:
        """Small produce amounts become a whole-item count."""
        cleaned = " ".join(_LEAVES_RE.sub(" ", strip_processed(item_name)).split())

        if "lettuce" in cleaned:
            return "1 head lettuce"
        if "garlic" in cleaned and "powder" not in cleaned:
            return "1 head garlic"

        main_item = " ".join(w for w in cleaned.split() if w.lower() not in PRODUCE_DESCRIPTORS)
        return f"1 {main_item or cleaned}"


def _quantity(amount_str: str, unit: str) -> str:
    if unit in ("g", "ml"):
        return f"{amount_str}{unit}"
    return f"{amount_str} {unit}"
