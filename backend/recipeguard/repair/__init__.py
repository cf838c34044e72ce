"""Violation classification, programmatic fixes and the bounded repair loop."""

from recipeguard.repair.classifier import REPAIR_STRATEGY, RepairStrategy, classify, split_violations
from recipeguard.repair.fixes import ProgrammaticFixer
from recipeguard.repair.generator import RecipeGenerator
from recipeguard.repair.workflow import RepairEngine, RepairOutcome, RepairStatus

__all__ = [
    "REPAIR_STRATEGY",
    "RepairStrategy",
    "classify",
    "split_violations",
    "ProgrammaticFixer",
    "RecipeGenerator",
    "RepairEngine",
    "RepairOutcome",
    "RepairStatus",
]
