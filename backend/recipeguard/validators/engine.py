"""Validation Orchestrator — runs every checker concurrently and aggregates.

This is the main entry point for recipe validation. All checkers see the same
immutable artifact snapshot; results are merged only after every task finished.

Usage:
    orchestrator = ValidationOrchestrator.default(client)
    result = await orchestrator.validate_all(artifact, constraints)
    if not result.valid:
        # hand result.violations to the RepairEngine
"""

import asyncio
import time
from typing import Optional, Sequence

import structlog

from recipeguard.errors import ValidationError
from recipeguard.llm.client import TextClient
from recipeguard.models import AggregateResult, Artifact, UserConstraints, ValidationResult
from recipeguard.units.engine import UnitConversionEngine
from recipeguard.validators.allergen_warning import AllergenWarningChecker
from recipeguard.validators.appliance import ApplianceComplianceChecker
from recipeguard.validators.base import BaseChecker
from recipeguard.validators.completeness import CompletenessChecker
from recipeguard.validators.ingredient_allergy import IngredientAllergyChecker
from recipeguard.validators.metric_units import MetricUnitChecker
from recipeguard.validators.preference import PreferenceChecker

logger = structlog.get_logger()


def default_checkers(client: TextClient, engine: Optional[UnitConversionEngine] = None) -> list[BaseChecker]:
    """The full checker set, in aggregation order."""
    return [
        AllergenWarningChecker(),         # Deterministic, safety-critical
        IngredientAllergyChecker(),       # Deterministic
        MetricUnitChecker(engine),        # Deterministic, attaches converted lists
        ApplianceComplianceChecker(client),
        CompletenessChecker(client),
        PreferenceChecker(client),
    ]


class ValidationOrchestrator:
    """Fans the checker set out over one artifact and joins the results.

    Design principles:
        - Concurrent: checkers only suspend on external calls
        - Fail-open: a checker that raises counts as passed
        - Order-independent: aggregation follows registration order, never completion order
        - Observable: logs every validation run with per-checker timing
    """

    def __init__(self, checkers: Sequence[BaseChecker]):
        self.checkers = list(checkers)

    @classmethod
    def default(cls, client: TextClient, engine: Optional[UnitConversionEngine] = None) -> "ValidationOrchestrator":
        return cls(default_checkers(client, engine))

    async def validate_all(self, artifact: Artifact, constraints: UserConstraints) -> AggregateResult:
        """Run every checker against the artifact and aggregate the results.

        Returns:
            AggregateResult with all violations and per-checker results
        """
        start_time = time.perf_counter()

        outcomes = await asyncio.gather(
            *(self._run_checker(checker, artifact, constraints) for checker in self.checkers)
        )

        per_checker: dict[str, ValidationResult] = {}
        checker_timings: dict[str, float] = {}
        violations = []
        fix_instructions = []
        for checker, (result, duration_ms) in zip(self.checkers, outcomes):
            per_checker[checker.name] = result
            checker_timings[checker.name] = duration_ms
            violations.extend(result.violations)
            fix_instructions.extend(result.fix_instructions)

        aggregate = AggregateResult(
            violations=tuple(violations),
            fix_instructions=tuple(fix_instructions),
            per_checker=per_checker,
        )

        logger.info(
            "validation_complete",
            valid=aggregate.valid,
            total_violations=len(violations),
            kinds=sorted(k.value for k in aggregate.kinds()),
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            checker_timings=checker_timings,
        )
        return aggregate

    async def ensure_valid(self, artifact: Artifact, constraints: UserConstraints) -> AggregateResult:
        """Like validate_all, but raises when the artifact is not compliant.

        Raises:
            ValidationError: carrying every violation found
        """
        result = await self.validate_all(artifact, constraints)
        if not result.valid:
            raise ValidationError(
                "ValidationOrchestrator",
                f"Recipe has {len(result.violations)} violation(s)",
                list(result.violations),
            )
        return result

    @staticmethod
    async def _run_checker(
        checker: BaseChecker, artifact: Artifact, constraints: UserConstraints
    ) -> tuple[ValidationResult, float]:
        start = time.perf_counter()
        try:
            result = await checker.check(artifact, constraints)
        except Exception as e:
            logger.error("checker_failed", checker=checker.name, error=str(e))
            # Fail open
            result = ValidationResult.passed()
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.debug("checker_completed", checker=checker.name, valid=result.valid, duration_ms=duration_ms)
        return result, duration_ms
