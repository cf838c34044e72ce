"""Violation models: kinds, affected fields, per-checker and aggregated results.

Violations are immutable once produced. Results from different checkers are
only ever concatenated, never merged, so each violation keeps its provenance.
"""

from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ViolationKind(str, Enum):
    """Every violation kind a checker can produce.

    Naming convention: the wire ``type`` string.
    """

    # Allergen warning placement
    MISSING_EMOJI = "missing_emoji"
    INCORRECT_WARNING_FORMAT = "incorrect_warning_format"
    GENERIC_WARNING = "generic_warning"
    ALLERGEN_NOT_IN_INSTRUCTIONS = "allergen_not_in_instructions"
    ALLERGEN_IN_INGREDIENTS = "allergen_in_ingredients"

    # Units and shopping realism
    NON_METRIC_UNIT_IN_INGREDIENTS = "non_metric_unit_in_ingredients"
    NON_METRIC_UNIT_IN_SHOPPING_LIST = "non_metric_unit_in_shopping_list"
    UNREALISTIC_SHOPPING_AMOUNT = "unrealistic_shopping_amount"

    # Appliances
    UNAVAILABLE_APPLIANCE_USED = "unavailable_appliance_used"
    NO_INSTRUCTIONS = "no_instructions"

    # Completeness
    MISSING_REQUIRED_FIELD = "missing_required_field"
    INGREDIENT_NOT_USED = "ingredient_not_used"
    INGREDIENT_MISSING_FROM_LIST = "ingredient_missing_from_list"
    INGREDIENT_MISSING_FROM_SHOPPING_LIST = "ingredient_missing_from_shopping_list"

    # Preferences
    PREFERENCE_VIOLATION = "preference_violation"

    # Anything received over the wire that we do not know
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, value: Any) -> "ViolationKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNRECOGNIZED


class ViolationField(str, Enum):
    """Artifact field a violation points at."""

    TITLE = "title"
    DESCRIPTION = "description"
    INGREDIENTS = "ingredients"
    INSTRUCTIONS = "instructions"
    SHOPPING_LIST = "shopping_list"
    GENERAL = "general"

    @classmethod
    def parse(cls, value: Any) -> "ViolationField":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower().replace("shoppinglist", "shopping_list")
        try:
            return cls(text)
        except ValueError:
            return cls.GENERAL


class ConvertedData(BaseModel):
    """Pre-computed replacement values a deterministic fix can apply as-is."""

    model_config = ConfigDict(frozen=True)

    ingredients: Optional[tuple[str, ...]] = None
    shopping_list: Optional[tuple[str, ...]] = None


class Violation(BaseModel):
    """A single detected non-compliance with a fix hint."""

    model_config = ConfigDict(frozen=True)

    kind: ViolationKind
    message: str
    field: ViolationField = ViolationField.GENERAL
    fix_hint: str = Field(min_length=1)
    step_index: Optional[int] = None  # 0-based instruction step, when the violation targets one
    payload: Optional[ConvertedData] = None

    @property
    def step_number(self) -> Optional[int]:
        return None if self.step_index is None else self.step_index + 1

    def to_wire(self) -> dict:
        wire = {
            "type": self.kind.value,
            "message": self.message,
            "field": self.field.value,
            "fix_instruction": self.fix_hint,
        }
        if self.payload is not None:
            wire["converted_data"] = self.payload.model_dump(mode="json", exclude_none=True)
        return wire

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "Violation":
        converted = data.get("converted_data")
        return cls(
            kind=ViolationKind.parse(data.get("type")),
            message=str(data.get("message") or ""),
            field=ViolationField.parse(data.get("field")),
            fix_hint=str(data.get("fix_instruction") or "Review and correct the recipe"),
            step_index=data.get("step_index"),
            payload=ConvertedData.model_validate(converted) if converted else None,
        )


class ValidationResult(BaseModel):
    """Outcome of one checker run."""

    model_config = ConfigDict(frozen=True)

    violations: tuple[Violation, ...] = ()
    fix_instructions: tuple[str, ...] = ()

    @computed_field
    @property
    def valid(self) -> bool:
        return not self.violations

    @classmethod
    def passed(cls) -> "ValidationResult":
        return cls()

    @classmethod
    def from_violations(
        cls, violations: Iterable[Violation], fix_instructions: Iterable[str] = ()
    ) -> "ValidationResult":
        violations = tuple(violations)
        if not violations:
            return cls()
        return cls(violations=violations, fix_instructions=tuple(i for i in fix_instructions if i))

    def to_wire(self) -> dict:
        return {
            "valid": self.valid,
            "violations": [v.to_wire() for v in self.violations],
            "fix_instructions": list(self.fix_instructions),
        }


class AggregateResult(BaseModel):
    """Outcome of a full validation pass over every configured checker."""

    model_config = ConfigDict(frozen=True)

    violations: tuple[Violation, ...] = ()
    fix_instructions: tuple[str, ...] = ()
    per_checker: dict[str, ValidationResult] = Field(default_factory=dict)

    @computed_field
    @property
    def valid(self) -> bool:
        return not self.violations

    def kinds(self) -> set[ViolationKind]:
        return {v.kind for v in self.violations}

    def to_wire(self) -> dict:
        return {
            "valid": self.valid,
            "violations": [v.to_wire() for v in self.violations],
            "fix_instructions": list(self.fix_instructions),
        }
