"""Appliance Compliance Checker — recipes must run on the user's equipment.

Detection is model-assisted; when the external call fails, a word-boundary
keyword scan over each step takes over.
"""

import re
from typing import Sequence

import structlog
from pydantic import AliasChoices, BaseModel, Field

from recipeguard.errors import ExecutionError
from recipeguard.models import Artifact, UserConstraints, ValidationResult, ViolationField, ViolationKind
from recipeguard.validators.base import ModelBackedChecker

logger = structlog.get_logger()


class ApplianceUse(BaseModel):
    appliance: str = ""
    step: int = Field(default=1, validation_alias=AliasChoices("step", "step_number"))


class ApplianceReport(BaseModel):
    available_used: list[ApplianceUse] = Field(default_factory=list)
    unavailable_used: list[ApplianceUse] = Field(default_factory=list)


def appliance_pattern(appliance: str) -> re.Pattern:
    """``food_processor`` also matches "food processor" and "food-processor"."""
    parts = [re.escape(p) for p in appliance.lower().replace("-", "_").replace(" ", "_").split("_") if p]
    return re.compile(rf"\b{'[-_ ]?'.join(parts)}s?\b", re.IGNORECASE)


def fallback_detection(instructions: Sequence[str], appliances: Sequence[str]) -> list[ApplianceUse]:
    """Keyword scan: every (appliance, 1-based step) pair mentioned in the instructions."""
    patterns = [(a, appliance_pattern(a)) for a in appliances if a.strip()]
    return [
        ApplianceUse(appliance=appliance, step=index + 1)
        for index, step in enumerate(instructions)
        for appliance, pattern in patterns
        if pattern.search(step)
    ]


class ApplianceComplianceChecker(ModelBackedChecker):
    """Validates that instructions only use available appliances."""

    system_instructions = """You are analyzing recipe instructions to detect which cooking appliances are mentioned.

Your task:
1. Read each instruction step carefully
2. Identify which appliances are mentioned or required in each step
3. Match them against the provided lists of available and unavailable appliances
4. Return a JSON object with:
   - "available_used": Array of { "appliance": "name", "step": number } objects
   - "unavailable_used": Array of { "appliance": "name", "step": number } objects

Be thorough - check for:
- Direct mentions (e.g., "use the oven", "microwave for 2 minutes")
- Implied usage (e.g., "bake at 180°C" implies oven)
- Alternative names (e.g., "stovetop" = "stove", "cooktop" = "stove")

Return ONLY valid JSON, no other text."""

    @property
    def name(self) -> str:
        return "appliance"

    async def check(self, artifact: Artifact, constraints: UserConstraints) -> ValidationResult:
        if not constraints.unavailable_appliances:
            return ValidationResult.passed()

        instructions = artifact.instructions
        if not instructions:
            return ValidationResult.from_violations(
                [self._violation(
                    ViolationKind.NO_INSTRUCTIONS,
                    "Recipe has no instructions to validate",
                    "Add instructions to the recipe",
                    field=ViolationField.INSTRUCTIONS,
                )],
                ["Recipe must have instructions"],
            )

        try:
            report = await self._ask(self._build_prompt(instructions, constraints), ApplianceReport)
            used = report.unavailable_used
        except ExecutionError as e:
            logger.warning("appliance_detection_fallback", checker=self.name, error=str(e))
            used = fallback_detection(instructions, constraints.unavailable_appliances)

        # Steps outside the instruction range are model noise
        used = [u for u in used if 1 <= u.step <= len(instructions) and u.appliance.strip()]

        violations = [
            self._violation(
                ViolationKind.UNAVAILABLE_APPLIANCE_USED,
                f"Unavailable appliance '{u.appliance}' is used in instruction step {u.step}",
                f"Replace or remove the use of '{u.appliance}' in step {u.step} with an available "
                "appliance or alternative method",
                field=ViolationField.INSTRUCTIONS,
                step_index=u.step - 1,
            )
            for u in used
        ]
        if not violations:
            return ValidationResult.passed()
        return ValidationResult.from_violations(
            violations, [self._fix_instructions(constraints.available_appliances, used)]
        )

    def _build_prompt(self, instructions: Sequence[str], constraints: UserConstraints) -> str:
        return f"""Analyze the following recipe instructions and detect which appliances are used.

Available Appliances: {", ".join(constraints.available_appliances) or "none"}
Unavailable Appliances: {", ".join(constraints.unavailable_appliances)}

Instructions:
{self._numbered(instructions)}

Return a JSON object with:
{{
  "available_used": [{{"appliance": "stove", "step": 1}}, ...],
  "unavailable_used": [{{"appliance": "oven", "step": 3}}, ...]
}}

Step numbers are 1-based (first instruction is step 1)."""

    @staticmethod
    def _fix_instructions(available: Sequence[str], used: Sequence[ApplianceUse]) -> str:
        available_text = ", ".join(available) or "none"
        lines = ["CRITICAL: The recipe uses unavailable appliances that must be replaced.", ""]
        lines.append("Unavailable appliances used:")
        lines.extend(f"  - {u.appliance} in step {u.step}" for u in used)
        lines.append("")
        lines.append(f"Available appliances you can use: {available_text}")
        lines.append("")
        lines.append("Fix instructions:")
        lines.append("1. Replace or remove the use of unavailable appliances in the mentioned steps")
        lines.append(f"2. Use only appliances from the available list: {available_text}")
        lines.append("3. If an unavailable appliance is required, find an alternative cooking method using available appliances")
        lines.append("4. Ensure the recipe can be fully executed with only available equipment")
        return "\n".join(lines)
