"""Allergen Warning Checker — warning placement, format and content.

When the user explicitly asked for an ingredient they are allergic to, every
instruction step that introduces it must carry a personalized warning within
a one-step window:

    ⚠ WARNING: This step contains peanuts (nuts) which you are allergic to. Proceed with extreme caution.
"""

from typing import Optional, Sequence

from recipeguard.models import (
    Artifact,
    UserConstraints,
    ValidationResult,
    Violation,
    ViolationField,
    ViolationKind,
)
from recipeguard.validators.base import BaseChecker
from recipeguard.validators.matching import (
    AllergenMatch,
    allergen_names,
    find_mention_steps,
    find_requested_allergens,
    warning_display_name,
)

WARNING_GLYPH = "⚠"
WARNING_TOKEN = "WARNING:"
WARNING_TEMPLATE = (
    WARNING_GLYPH
    + " "
    + WARNING_TOKEN
    + " This step contains {allergen} which you are allergic to. Proceed with extreme caution. "
)


def has_warning(step: str) -> bool:
    """Glyph plus the exact capitalized token."""
    return WARNING_GLYPH in step and WARNING_TOKEN in step


def has_miscased_warning(step: str) -> bool:
    """Glyph plus a ``warning:`` token in the wrong case."""
    return WARNING_GLYPH in step and WARNING_TOKEN not in step and "warning:" in step.lower()


def step_window(instructions: Sequence[str], step_index: int) -> list[int]:
    """The step and its direct neighbours, clamped to the instruction range."""
    return [i for i in (step_index - 1, step_index, step_index + 1) if 0 <= i < len(instructions)]


def warning_text(matches: Sequence[AllergenMatch]) -> str:
    return WARNING_TEMPLATE.format(allergen=warning_display_name(matches))


class AllergenWarningChecker(BaseChecker):
    """Validates personalized allergen warnings around requested allergen ingredients."""

    @property
    def name(self) -> str:
        return "allergen_warning"

    async def check(self, artifact: Artifact, constraints: UserConstraints) -> ValidationResult:
        matches = find_requested_allergens(constraints.requested_ingredients, constraints.allergies)
        if not matches:
            return ValidationResult.passed()

        instructions = artifact.instructions
        mention_steps = find_mention_steps(instructions, matches)

        if not mention_steps:
            violation = self._violation(
                ViolationKind.ALLERGEN_NOT_IN_INSTRUCTIONS,
                "Requested allergen ingredient not found in instructions - ensure it's added to a step",
                "Add the allergen ingredient to the appropriate instruction step",
                field=ViolationField.INSTRUCTIONS,
            )
            return ValidationResult.from_violations(
                [violation], [self._fix_instructions(matches, [violation], mention_steps)]
            )

        names = allergen_names(matches)
        violations: list[Violation] = []
        seen: set[tuple[ViolationKind, int]] = set()

        for step_index in mention_steps:
            violation = self._check_step(instructions, step_index, names)
            if violation is None:
                continue
            key = (violation.kind, violation.step_index)
            if key not in seen:
                seen.add(key)
                violations.append(violation)

        if not violations:
            return ValidationResult.passed()
        return ValidationResult.from_violations(
            violations, [self._fix_instructions(matches, violations, mention_steps)]
        )

    def _check_step(self, instructions: Sequence[str], step_index: int, names: list[str]) -> Optional[Violation]:
        window = step_window(instructions, step_index)
        warning_index = next((i for i in window if has_warning(instructions[i])), None)

        if warning_index is None:
            miscased_index = next((i for i in window if has_miscased_warning(instructions[i])), None)
            if miscased_index is not None:
                number = miscased_index + 1
                return self._violation(
                    ViolationKind.INCORRECT_WARNING_FORMAT,
                    f"Warning in step {number} does not have capitalized 'WARNING:' format. "
                    f"Must start with '{WARNING_GLYPH} WARNING:' (capitalized)",
                    f"Ensure instruction step {number} starts with '{WARNING_GLYPH} WARNING:' "
                    "(capitalized, not 'warning' or 'Warning')",
                    field=ViolationField.INSTRUCTIONS,
                    step_index=miscased_index,
                )
            number = step_index + 1
            return self._violation(
                ViolationKind.MISSING_EMOJI,
                f"Warning emoji ({WARNING_GLYPH}) is missing from instruction step {number} where allergen is added",
                f"Add the warning emoji ({WARNING_GLYPH}) and capitalized 'WARNING:' to instruction step "
                f"{number} where the allergen is added",
                field=ViolationField.INSTRUCTIONS,
                step_index=step_index,
            )

        window_text = " ".join(instructions[i] for i in window).lower()
        missing = [name for name in names if name.lower() not in window_text]
        if not missing:
            return None

        number = warning_index + 1
        listed = ", ".join(missing)
        return self._violation(
            ViolationKind.GENERIC_WARNING,
            f"Warning in step {number} does not mention specific allergen(s): {listed}",
            f"Mention the specific allergen(s) '{listed}' in the warning text for step {number}",
            field=ViolationField.INSTRUCTIONS,
            step_index=warning_index,
        )

    @staticmethod
    def _fix_instructions(
        matches: Sequence[AllergenMatch], violations: Sequence[Violation], mention_steps: Sequence[int]
    ) -> str:
        kinds = {v.kind for v in violations}
        step_numbers = ", ".join(str(i + 1) for i in mention_steps)
        allergens = " and ".join(dict.fromkeys(m.allergy_name for m in matches))

        parts = []
        if ViolationKind.MISSING_EMOJI in kinds:
            parts.append(f"Add the warning emoji ({WARNING_GLYPH}) to instruction step(s) {step_numbers} where the allergen is added")
        if ViolationKind.GENERIC_WARNING in kinds:
            parts.append(f"Include a personalized warning in step(s) {step_numbers} that mentions the specific allergen(s): {allergens}")
        if ViolationKind.ALLERGEN_NOT_IN_INSTRUCTIONS in kinds:
            parts.append("Add the requested allergen ingredient to the instruction step where it is used")
        parts.append(f'Example format for the instruction step: "{warning_text(matches).strip()}"')
        return ". ".join(parts)
