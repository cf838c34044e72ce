"""Metric Unit Checker — metric ingredients and realistic shopping amounts.

Every violation carries the fully converted list for its field, so the repair
step applies it as-is instead of converting a second time.
"""

from typing import Optional

from recipeguard.models import (
    Artifact,
    ConvertedData,
    UserConstraints,
    ValidationResult,
    ViolationField,
    ViolationKind,
)
from recipeguard.units.engine import UnitConversionEngine
from recipeguard.validators.base import BaseChecker


class MetricUnitChecker(BaseChecker):
    """Runs the unit conversion engine over ingredients and the shopping list."""

    def __init__(self, engine: Optional[UnitConversionEngine] = None):
        self.engine = engine or UnitConversionEngine()

    @property
    def name(self) -> str:
        return "metric_unit"

    async def check(self, artifact: Artifact, constraints: UserConstraints) -> ValidationResult:
        ingredient_results = [self.engine.normalize_ingredient_line(i) for i in artifact.ingredients]
        shopping_results = [self.engine.normalize_shopping_line(i) for i in artifact.shopping_list]

        converted_ingredients = tuple(r.converted_text for r in ingredient_results)
        converted_shopping = tuple(r.converted_text for r in shopping_results)

        violations = []
        ingredient_payload = ConvertedData(ingredients=converted_ingredients)
        for original, result in zip(artifact.ingredients, ingredient_results):
            if not result.changed:
                continue
            violations.append(self._violation(
                ViolationKind.NON_METRIC_UNIT_IN_INGREDIENTS,
                f"Ingredient '{original}' uses non-metric unit '{result.original_unit}'",
                f"Convert to metric: {result.converted_text}",
                field=ViolationField.INGREDIENTS,
                payload=ingredient_payload,
            ))

        shopping_payload = ConvertedData(shopping_list=converted_shopping)
        for original, result in zip(artifact.shopping_list, shopping_results):
            if not result.changed:
                continue
            kind = (
                ViolationKind.UNREALISTIC_SHOPPING_AMOUNT
                if result.fixed
                else ViolationKind.NON_METRIC_UNIT_IN_SHOPPING_LIST
            )
            violations.append(self._violation(
                kind,
                f"Shopping list item '{original}' {result.issue or 'needs a realistic purchase amount'}",
                f"Fix to realistic purchase amount: {result.converted_text}",
                field=ViolationField.SHOPPING_LIST,
                payload=shopping_payload,
            ))

        if not violations:
            return ValidationResult.passed()
        return ValidationResult.from_violations(
            violations, [self._fix_instructions(converted_ingredients, converted_shopping)]
        )

    @staticmethod
    def _fix_instructions(ingredients: tuple[str, ...], shopping_list: tuple[str, ...]) -> str:
        lines = ["CRITICAL: The recipe uses non-metric units or unrealistic shopping amounts.", ""]
        lines.append("Converted Ingredients:")
        lines.extend(f"  - {i}" for i in ingredients)
        lines.append("")
        lines.append("Converted Shopping List (realistic purchase amounts):")
        lines.extend(f"  - {i}" for i in shopping_list)
        lines.append("")
        lines.append("Fix instructions:")
        lines.append("1. Replace all non-metric units with metric equivalents (g, ml, pieces)")
        lines.append("2. Ensure shopping list uses realistic purchase amounts (no teaspoons, pinches, or tiny amounts)")
        lines.append("3. Convert '1 clove garlic' to '1 head garlic' in shopping list")
        lines.append("4. For spices, use realistic container sizes or just the spice name")
        return "\n".join(lines)
