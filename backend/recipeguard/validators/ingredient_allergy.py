"""Ingredient Allergy Checker — allergens the user did not ask for."""

from recipeguard.models import Artifact, UserConstraints, ValidationResult, ViolationField, ViolationKind
from recipeguard.units.engine import strip_quantity
from recipeguard.validators.base import BaseChecker
from recipeguard.validators.matching import matches_allergy, mentions_ingredient


class IngredientAllergyChecker(BaseChecker):
    """Flags ingredients matching a user allergy unless they were explicitly requested."""

    @property
    def name(self) -> str:
        return "ingredient_allergy"

    async def check(self, artifact: Artifact, constraints: UserConstraints) -> ValidationResult:
        if not constraints.allergies:
            return ValidationResult.passed()

        violations = []
        for line in artifact.ingredients:
            name = strip_quantity(line).lower()
            if not name or self._was_requested(name, constraints.requested_ingredients):
                continue
            hits = [a for a in constraints.allergies if matches_allergy(name, a)]
            if not hits:
                continue
            allergies = ", ".join(a.replace("_", " ") for a in hits)
            violations.append(self._violation(
                ViolationKind.ALLERGEN_IN_INGREDIENTS,
                f"Ingredient '{line}' matches the user's allergy: {allergies}",
                f"Remove '{name}' from the ingredients, instructions and shopping list "
                "or replace it with a safe alternative",
                field=ViolationField.INGREDIENTS,
            ))

        if not violations:
            return ValidationResult.passed()
        return ValidationResult.from_violations(
            violations,
            ["CRITICAL: The recipe contains ingredients the user is allergic to and did not ask for. "
             "Replace them with safe alternatives everywhere they appear."],
        )

    @staticmethod
    def _was_requested(name: str, requested: tuple[str, ...]) -> bool:
        return any(matches_allergy(name, r) or mentions_ingredient(name, r) for r in requested)
