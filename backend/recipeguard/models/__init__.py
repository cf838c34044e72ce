"""Data model shared by checkers, the orchestrator and the repair engine."""

from recipeguard.models.artifact import (
    KNOWN_APPLIANCES,
    Artifact,
    ChangeMagnitude,
    RecipeContent,
    UserConstraints,
    normalize_allergies,
)
from recipeguard.models.violations import (
    AggregateResult,
    ConvertedData,
    ValidationResult,
    Violation,
    ViolationField,
    ViolationKind,
)

__all__ = [
    "KNOWN_APPLIANCES",
    "Artifact",
    "ChangeMagnitude",
    "RecipeContent",
    "UserConstraints",
    "normalize_allergies",
    "AggregateResult",
    "ConvertedData",
    "ValidationResult",
    "Violation",
    "ViolationField",
    "ViolationKind",
]
