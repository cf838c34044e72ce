"""Programmatic fixes — pure text transforms for deterministic-fixable violations.

Unit violations apply the converted lists their checker attached; allergen
format violations rewrite only the instruction step they point at.
"""

import re
from collections import defaultdict
from typing import Sequence

import structlog

from recipeguard.models import Artifact, UserConstraints, Violation, ViolationKind
from recipeguard.repair.classifier import ALLERGEN_FORMAT_KINDS, step_index_of
from recipeguard.validators.allergen_warning import WARNING_GLYPH, has_warning, warning_text
from recipeguard.validators.matching import find_requested_allergens

logger = structlog.get_logger()

_MISCASED_WARNING_RE = re.compile(r"⚠️?\s*warning:", re.IGNORECASE)
_WARNING_CLAUSE_RE = re.compile(r"(⚠️?\s*WARNING:\s*)[^.!?;]*([.!?;]\s*)")
_REPEATED_CAUTION_RE = re.compile(r"(Proceed with extreme caution\.\s*){2,}")


class ProgrammaticFixer:
    """Applies deterministic fixes and reports how many fields/steps changed."""

    def apply(
        self, artifact: Artifact, violations: Sequence[Violation], constraints: UserConstraints
    ) -> tuple[Artifact, int]:
        fixes = 0

        ingredients = self._converted(violations, ViolationKind.NON_METRIC_UNIT_IN_INGREDIENTS, "ingredients")
        if ingredients is not None and ingredients != artifact.ingredients:
            artifact = artifact.with_ingredients(ingredients)
            fixes += 1
            logger.info("programmatic_fix_applied", field="ingredients", items=len(ingredients))

        shopping_list = self._converted(
            violations,
            (ViolationKind.NON_METRIC_UNIT_IN_SHOPPING_LIST, ViolationKind.UNREALISTIC_SHOPPING_AMOUNT),
            "shopping_list",
        )
        if shopping_list is not None and shopping_list != artifact.shopping_list:
            artifact = artifact.with_shopping_list(shopping_list)
            fixes += 1
            logger.info("programmatic_fix_applied", field="shopping_list", items=len(shopping_list))

        allergen_violations = [v for v in violations if v.kind in ALLERGEN_FORMAT_KINDS]
        if allergen_violations and artifact.instructions:
            instructions, changed = self._fix_warnings(artifact.instructions, allergen_violations, constraints)
            if changed:
                artifact = artifact.with_instructions(instructions)
                fixes += changed

        return artifact, fixes

    @staticmethod
    def _converted(violations: Sequence[Violation], kinds, attribute: str):
        kinds = kinds if isinstance(kinds, tuple) else (kinds,)
        for violation in violations:
            if violation.kind in kinds and violation.payload is not None:
                converted = getattr(violation.payload, attribute)
                if converted:
                    return converted
        return None

    def _fix_warnings(
        self, instructions: Sequence[str], violations: Sequence[Violation], constraints: UserConstraints
    ) -> tuple[list[str], int]:
        matches = find_requested_allergens(constraints.requested_ingredients, constraints.allergies)
        template = warning_text(matches)
        instructions = list(instructions)

        by_step: dict[int, list[Violation]] = defaultdict(list)
        for violation in violations:
            index = step_index_of(violation)
            if index is not None and 0 <= index < len(instructions):
                by_step[index].append(violation)

        changed = 0
        for index in sorted(by_step):
            original = instructions[index]
            step = original
            for violation in by_step[index]:
                step = self._fix_step(step, violation.kind, template)
            if step != original:
                instructions[index] = step
                changed += 1
                logger.info(
                    "programmatic_fix_applied",
                    field="instructions",
                    step=index + 1,
                    kinds=[v.kind.value for v in by_step[index]],
                )
        return instructions, changed

    @staticmethod
    def _fix_step(step: str, kind: ViolationKind, template: str) -> str:
        if kind is ViolationKind.MISSING_EMOJI:
            return step if has_warning(step) else template + step

        if kind is ViolationKind.INCORRECT_WARNING_FORMAT:
            return _MISCASED_WARNING_RE.sub(f"{WARNING_GLYPH} WARNING:", step)

        if kind is ViolationKind.GENERIC_WARNING:
            if not has_warning(step):
                return template + step
            clause = template.split("WARNING:", 1)[1].lstrip()
            step = _WARNING_CLAUSE_RE.sub(lambda m: m.group(1) + clause, step, count=1)
            return _REPEATED_CAUTION_RE.sub("Proceed with extreme caution. ", step)

        return step
