"""Violation classifier — which violations a pure text transform can fix.

Every ViolationKind must have an entry in REPAIR_STRATEGY; a missing entry
fails at import time rather than silently falling through.
"""

import re
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from recipeguard.models import Violation, ViolationKind


class RepairStrategy(str, Enum):
    DETERMINISTIC = "deterministic"
    MODEL_REQUIRED = "model_required"


REPAIR_STRATEGY: Mapping[ViolationKind, RepairStrategy] = MappingProxyType({
    ViolationKind.MISSING_EMOJI: RepairStrategy.DETERMINISTIC,
    ViolationKind.INCORRECT_WARNING_FORMAT: RepairStrategy.DETERMINISTIC,
    ViolationKind.GENERIC_WARNING: RepairStrategy.DETERMINISTIC,
    ViolationKind.NON_METRIC_UNIT_IN_INGREDIENTS: RepairStrategy.DETERMINISTIC,
    ViolationKind.NON_METRIC_UNIT_IN_SHOPPING_LIST: RepairStrategy.DETERMINISTIC,
    ViolationKind.UNREALISTIC_SHOPPING_AMOUNT: RepairStrategy.DETERMINISTIC,
    ViolationKind.ALLERGEN_NOT_IN_INSTRUCTIONS: RepairStrategy.MODEL_REQUIRED,
    ViolationKind.ALLERGEN_IN_INGREDIENTS: RepairStrategy.MODEL_REQUIRED,
    ViolationKind.UNAVAILABLE_APPLIANCE_USED: RepairStrategy.MODEL_REQUIRED,
    ViolationKind.NO_INSTRUCTIONS: RepairStrategy.MODEL_REQUIRED,
    ViolationKind.MISSING_REQUIRED_FIELD: RepairStrategy.MODEL_REQUIRED,
    ViolationKind.INGREDIENT_NOT_USED: RepairStrategy.MODEL_REQUIRED,
    ViolationKind.INGREDIENT_MISSING_FROM_LIST: RepairStrategy.MODEL_REQUIRED,
    ViolationKind.INGREDIENT_MISSING_FROM_SHOPPING_LIST: RepairStrategy.MODEL_REQUIRED,
    ViolationKind.PREFERENCE_VIOLATION: RepairStrategy.MODEL_REQUIRED,
    ViolationKind.UNRECOGNIZED: RepairStrategy.MODEL_REQUIRED,
})

_unclassified = set(ViolationKind) - set(REPAIR_STRATEGY)
if _unclassified:
    raise RuntimeError(f"Violation kinds without a repair strategy: {sorted(k.value for k in _unclassified)}")

ALLERGEN_FORMAT_KINDS: frozenset[ViolationKind] = frozenset({
    ViolationKind.MISSING_EMOJI,
    ViolationKind.INCORRECT_WARNING_FORMAT,
    ViolationKind.GENERIC_WARNING,
})

_STEP_RE = re.compile(r"\bstep (\d+)", re.IGNORECASE)


def classify(violation: Union[Violation, ViolationKind]) -> RepairStrategy:
    kind = violation.kind if isinstance(violation, Violation) else violation
    return REPAIR_STRATEGY[kind]


def split_violations(violations: Iterable[Violation]) -> tuple[list[Violation], list[Violation]]:
    """Return ``(deterministic, model_required)``, each in input order."""
    deterministic: list[Violation] = []
    model_required: list[Violation] = []
    for violation in violations:
        if classify(violation) is RepairStrategy.DETERMINISTIC:
            deterministic.append(violation)
        else:
            model_required.append(violation)
    return deterministic, model_required


def step_index_of(violation: Violation) -> Optional[int]:
    """0-based step a violation targets; falls back to "step N" in the message."""
    if violation.step_index is not None:
        return violation.step_index
    match = _STEP_RE.search(violation.message)
    return int(match.group(1)) - 1 if match else None
