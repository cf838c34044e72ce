"""Completeness Checker — required fields and internal consistency.

Checks:
    - title, description, ingredients and instructions are present (returns early if not)
    - ingredients ↔ instructions agree (model-assisted, fails open)
    - every ingredient appears on the shopping list (deterministic)
"""

import re
from typing import Sequence

import structlog
from pydantic import BaseModel, Field

from recipeguard.errors import ExecutionError
from recipeguard.models import Artifact, UserConstraints, ValidationResult, Violation, ViolationField, ViolationKind
from recipeguard.units.engine import strip_quantity
from recipeguard.validators.base import ModelBackedChecker

logger = structlog.get_logger()

_ARTICLES_RE = re.compile(r"\b(?:a|an|the|some|few|several)\s+", re.IGNORECASE)


class ConsistencyReport(BaseModel):
    unmentioned_ingredients: list[str] = Field(default_factory=list)
    extra_ingredients: list[str] = Field(default_factory=list)


def normalize_ingredient_name(line: str) -> str:
    """``"200g flour"`` → ``"flour"``; drops quantities and leading articles."""
    name = re.sub(r"\d+", "", strip_quantity(line)).strip().lower()
    return _ARTICLES_RE.sub("", name).strip()


class CompletenessChecker(ModelBackedChecker):
    """Validates that the recipe is complete and consistent with itself."""

    system_instructions = """You are analyzing a recipe to check if ingredients mentioned in instructions match the ingredients list.

Your task:
1. Read the ingredients list carefully
2. Read each instruction step
3. Identify any ingredients mentioned in instructions that are NOT in the ingredients list
4. Identify any ingredients in the list that are NOT mentioned in any instruction
5. Return a JSON object with:
   - "unmentioned_ingredients": Array of ingredient names from the list that aren't used in instructions
   - "extra_ingredients": Array of ingredient names mentioned in instructions but not in the list

Be thorough but practical:
- Ignore minor variations (e.g., "salt" vs "a pinch of salt")
- Focus on actual ingredients, not quantities or cooking methods
- Consider that some ingredients might be used implicitly (e.g., "oil" when "frying")

Return ONLY valid JSON, no other text."""

    @property
    def name(self) -> str:
        return "completeness"

    async def check(self, artifact: Artifact, constraints: UserConstraints) -> ValidationResult:
        missing = self._check_missing_fields(artifact)
        if missing:
            return ValidationResult.from_violations(missing, [self._missing_fields_instructions(missing)])

        violations: list[Violation] = []
        violations.extend(await self._check_ingredient_instruction_consistency(artifact))
        violations.extend(self._check_shopping_list_consistency(artifact.ingredients, artifact.shopping_list))

        if not violations:
            return ValidationResult.passed()
        return ValidationResult.from_violations(violations, [self._fix_instructions(violations)])

    def _check_missing_fields(self, artifact: Artifact) -> list[Violation]:
        required = (
            ("title", ViolationField.TITLE, bool(artifact.title.strip()), "Add a title to the recipe"),
            ("description", ViolationField.DESCRIPTION, bool(artifact.description.strip()),
             "Add a description to the recipe"),
            ("ingredients", ViolationField.INGREDIENTS, any(i.strip() for i in artifact.ingredients),
             "Add ingredients list to the recipe content"),
            ("instructions", ViolationField.INSTRUCTIONS, any(i.strip() for i in artifact.instructions),
             "Add instructions to the recipe content"),
        )
        return [
            self._violation(
                ViolationKind.MISSING_REQUIRED_FIELD,
                f"Recipe is missing required field: {field_name}",
                fix_hint,
                field=field,
            )
            for field_name, field, present, fix_hint in required
            if not present
        ]

    async def _check_ingredient_instruction_consistency(self, artifact: Artifact) -> list[Violation]:
        prompt = f"""Analyze the following recipe for ingredient-instruction consistency.

Ingredients:
{self._numbered(artifact.ingredients)}

Instructions:
{self._numbered(artifact.instructions)}

Return a JSON object with:
{{
  "unmentioned_ingredients": ["ingredient1", "ingredient2", ...],
  "extra_ingredients": ["ingredient3", "ingredient4", ...]
}}

If all ingredients are properly used and no extra ingredients are mentioned, return empty arrays."""

        try:
            report = await self._ask(prompt, ConsistencyReport)
        except ExecutionError as e:
            logger.warning("consistency_check_skipped", checker=self.name, error=str(e))
            return []

        violations = [
            self._violation(
                ViolationKind.INGREDIENT_NOT_USED,
                f"Ingredient '{name}' is in the ingredients list but not mentioned in any instruction",
                f"Add '{name}' to the appropriate instruction step(s) or remove it from the ingredients list if not needed",
                field=ViolationField.INSTRUCTIONS,
            )
            for name in report.unmentioned_ingredients
            if name.strip()
        ]
        violations.extend(
            self._violation(
                ViolationKind.INGREDIENT_MISSING_FROM_LIST,
                f"Ingredient '{name}' is mentioned in instructions but not in the ingredients list",
                f"Add '{name}' to the ingredients list",
                field=ViolationField.INGREDIENTS,
            )
            for name in report.extra_ingredients
            if name.strip()
        )
        return violations

    def _check_shopping_list_consistency(
        self, ingredients: Sequence[str], shopping_list: Sequence[str]
    ) -> list[Violation]:
        # An omitted shopping list is allowed
        if not shopping_list:
            return []

        shopping_names = [n for n in (normalize_ingredient_name(item) for item in shopping_list) if n]
        violations = []
        for ingredient in ingredients:
            name = normalize_ingredient_name(ingredient)
            if not name:
                continue
            found = any(s in name or name in s for s in shopping_names)
            if not found:
                violations.append(self._violation(
                    ViolationKind.INGREDIENT_MISSING_FROM_SHOPPING_LIST,
                    f"Ingredient '{name}' is in the ingredients list but not in the shopping list",
                    f"Add '{name}' to the shopping list",
                    field=ViolationField.SHOPPING_LIST,
                ))
        return violations

    @staticmethod
    def _missing_fields_instructions(missing: Sequence[Violation]) -> str:
        lines = ["CRITICAL: The recipe is missing required fields.", "", "Missing fields:"]
        lines.extend(f"  - {v.field.value}: {v.message}" for v in missing)
        lines.append("")
        lines.append("Fix instructions:")
        lines.append("1. Add all missing required fields to the recipe")
        lines.append("2. Ensure the recipe has a title, description, ingredients and instructions")
        lines.append("3. Verify all fields are properly formatted")
        return "\n".join(lines)

    @staticmethod
    def _fix_instructions(violations: Sequence[Violation]) -> str:
        lines = ["CRITICAL: The recipe has completeness and consistency issues.", "", "Ingredient Consistency Issues:"]
        lines.extend(f"  - {v.message}" for v in violations)
        lines.append("")
        lines.append("Fix instructions:")
        lines.append("1. Ensure all ingredients in the list are mentioned in instructions")
        lines.append("2. Ensure all ingredients mentioned in instructions are in the ingredients list")
        lines.append("3. Ensure all ingredients are in the shopping list")
        return "\n".join(lines)
