"""Recipe checkers and the concurrent validation orchestrator."""

from recipeguard.validators.allergen_warning import AllergenWarningChecker
from recipeguard.validators.appliance import ApplianceComplianceChecker
from recipeguard.validators.base import BaseChecker, ModelBackedChecker
from recipeguard.validators.completeness import CompletenessChecker
from recipeguard.validators.engine import ValidationOrchestrator, default_checkers
from recipeguard.validators.ingredient_allergy import IngredientAllergyChecker
from recipeguard.validators.metric_units import MetricUnitChecker
from recipeguard.validators.preference import PreferenceChecker

__all__ = [
    "AllergenWarningChecker",
    "ApplianceComplianceChecker",
    "BaseChecker",
    "ModelBackedChecker",
    "CompletenessChecker",
    "ValidationOrchestrator",
    "default_checkers",
    "IngredientAllergyChecker",
    "MetricUnitChecker",
    "PreferenceChecker",
]
