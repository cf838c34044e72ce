"""Preference Checker — dietary and personal preferences, judged by the model."""

from typing import Optional

import structlog
from pydantic import BaseModel, Field

from recipeguard.errors import ExecutionError
from recipeguard.models import Artifact, UserConstraints, ValidationResult, ViolationField, ViolationKind
from recipeguard.validators.base import ModelBackedChecker

logger = structlog.get_logger()


class PreferenceIssue(BaseModel):
    message: Optional[str] = None
    field: Optional[str] = None
    preference: Optional[str] = None


class PreferenceReport(BaseModel):
    violations: list[PreferenceIssue] = Field(default_factory=list)


class PreferenceChecker(ModelBackedChecker):
    """Validates that the recipe aligns with the user's free-form preferences."""

    system_instructions = """You are analyzing a recipe to check if it aligns with user preferences and requirements.

Your task:
1. Read the user's preferences carefully
2. Read the recipe information
3. Identify any violations where the recipe does NOT align with user preferences
4. Be specific about what violates the preferences
5. Return a JSON object with:
   - "violations": Array of { "type": "preference_violation", "message": "description", "field": "field_name", "preference": "which preference was violated" }

Important:
- Only report actual violations (recipe doesn't match preferences)
- If recipe aligns with preferences, return empty violations array
- Consider dietary preferences, cooking methods, ingredient preferences, etc.
- Physical information (age, weight, gender) should only be considered if relevant to the recipe

Return ONLY valid JSON, no other text."""

    @property
    def name(self) -> str:
        return "preference"

    async def check(self, artifact: Artifact, constraints: UserConstraints) -> ValidationResult:
        if not constraints.preferences_text.strip() and not constraints.has_physical_info:
            return ValidationResult.passed()

        try:
            report = await self._ask(self._build_prompt(artifact, constraints), PreferenceReport)
        except ExecutionError as e:
            logger.warning("preference_check_skipped", checker=self.name, error=str(e))
            return ValidationResult.passed()

        violations = [
            self._violation(
                ViolationKind.PREFERENCE_VIOLATION,
                issue.message or "Recipe does not align with user preferences",
                f"Adjust recipe to align with user preference: {issue.preference or 'user preferences'}",
                field=ViolationField.parse(issue.field),
            )
            for issue in report.violations
        ]
        if not violations:
            return ValidationResult.passed()

        fix = "CRITICAL: The recipe does not align with the user's preferences.\n\nPreference issues:\n"
        fix += "\n".join(f"  - {v.message}" for v in violations)
        if constraints.preferences_text.strip():
            fix += f"\n\nUser preferences: {constraints.preferences_text.strip()}"
        return ValidationResult.from_violations(violations, [fix])

    @staticmethod
    def _recipe_info(artifact: Artifact) -> str:
        parts = [
            f"Title: {artifact.title or 'N/A'}",
            f"Description: {artifact.description or 'N/A'}",
        ]
        if artifact.ingredients:
            parts.append(f"Ingredients: {', '.join(artifact.ingredients)}")
        if artifact.instructions:
            parts.append(f"Instructions: {' | '.join(artifact.instructions)}")
        return "\n".join(parts)

    def _build_prompt(self, artifact: Artifact, constraints: UserConstraints) -> str:
        parts = ["Analyze the following recipe for compliance with user preferences:", "", "Recipe:"]
        parts.append(self._recipe_info(artifact))
        parts.append("")

        if constraints.preferences_text.strip():
            parts.extend(["User Preferences:", constraints.preferences_text.strip(), ""])

        if constraints.has_physical_info:
            parts.append("User Physical Information:")
            if constraints.age is not None:
                parts.append(f"Age: {constraints.age}")
            if constraints.weight_kg is not None:
                parts.append(f"Weight: {constraints.weight_kg} kg")
            if constraints.gender:
                parts.append(f"Gender: {constraints.gender}")
            parts.append("")

        parts.append('Return a JSON object with {"violations": [{"type": "preference_violation", '
                     '"message": "...", "field": "field_name", "preference": "..."}]}.')
        parts.append("If the recipe aligns with all preferences, return empty violations array.")
        return "\n".join(parts)
