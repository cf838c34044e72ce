"""Recipe pipeline — one user turn: validate, repair, report what changed.

This is the entry point a chat/web layer calls after the external generator
produced a draft. It never persists anything and never acts on the change
flags; it only computes them.

Usage:
    pipeline = build_pipeline()
    turn = await pipeline.process_turn(draft_payload, constraints, user_message, previous=last_recipe)
    if turn.change_magnitude is ChangeMagnitude.SIGNIFICANT:
        # caller may regenerate the recipe image
"""

from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from recipeguard.config import Settings, get_settings
from recipeguard.errors import InvalidInputError
from recipeguard.llm.client import OpenAIChatClient, TextClient
from recipeguard.logging_config import configure_logging
from recipeguard.models import AggregateResult, Artifact, ChangeMagnitude, UserConstraints
from recipeguard.repair.generator import RecipeGenerator
from recipeguard.repair.workflow import RepairEngine, RepairOutcome
from recipeguard.units.engine import ConversionConfig, UnitConversionEngine, strip_quantity
from recipeguard.validators.engine import ValidationOrchestrator
from recipeguard.validators.matching import extract_requested_ingredients

logger = structlog.get_logger()


class TurnResult(BaseModel):
    """Everything the caller needs after one turn."""

    model_config = ConfigDict(frozen=True)

    artifact: Artifact
    recipe_changed: bool
    change_magnitude: ChangeMagnitude
    validation: AggregateResult
    repair: RepairOutcome


def _ingredient_names(artifact: Artifact) -> set[str]:
    return {strip_quantity(i).lower() for i in artifact.ingredients if i.strip()}


def change_magnitude(previous: Optional[Artifact], current: Artifact) -> ChangeMagnitude:
    """How much the recipe changed compared with the previous turn.

    No previous recipe counts as significant; a new title or a different set
    of ingredients (quantities ignored) is significant; any other edit is minor.
    """
    if previous is None:
        return ChangeMagnitude.SIGNIFICANT
    if previous == current:
        return ChangeMagnitude.NONE
    if previous.title.strip().lower() != current.title.strip().lower():
        return ChangeMagnitude.SIGNIFICANT
    if _ingredient_names(previous) != _ingredient_names(current):
        return ChangeMagnitude.SIGNIFICANT
    return ChangeMagnitude.MINOR


class RecipePipeline:
    """Validates a generated recipe, repairs it, and computes change flags."""

    def __init__(self, orchestrator: ValidationOrchestrator, repair_engine: RepairEngine):
        self.orchestrator = orchestrator
        self.repair_engine = repair_engine

    async def process_turn(
        self,
        generated: Any,
        constraints: UserConstraints,
        user_message: str = "",
        previous: Any = None,
    ) -> TurnResult:
        """Run one turn.

        Args:
            generated: Artifact or its JSON payload, as produced by the generator
            constraints: User constraints for this turn
            user_message: The user's chat message
            previous: The recipe shown before this turn, if any

        Raises:
            InvalidInputError: the artifact, the previous artifact or the constraints are malformed
        """
        if not isinstance(constraints, UserConstraints):
            raise InvalidInputError(
                "RecipePipeline",
                f"Expected UserConstraints, got {type(constraints).__name__}",
            )
        artifact = Artifact.from_payload(generated)
        previous_artifact = Artifact.from_payload(previous) if previous is not None else None

        if not constraints.requested_ingredients and user_message:
            requested = extract_requested_ingredients(user_message)
            if requested:
                constraints = constraints.model_copy(update={"requested_ingredients": tuple(requested)})

        validation = await self.orchestrator.validate_all(artifact, constraints)
        outcome = await self.repair_engine.repair(
            artifact, constraints, user_message, violations=validation.violations
        )

        magnitude = change_magnitude(previous_artifact, outcome.artifact)
        logger.info(
            "turn_processed",
            status=outcome.status.value,
            model_iterations=outcome.model_iterations,
            remaining_violations=len(outcome.violations),
            change_magnitude=magnitude.value,
        )
        return TurnResult(
            artifact=outcome.artifact,
            recipe_changed=magnitude is not ChangeMagnitude.NONE,
            change_magnitude=magnitude,
            validation=validation,
            repair=outcome,
        )


def build_pipeline(
    settings: Optional[Settings] = None,
    classifier: Optional[TextClient] = None,
    generator: Optional[TextClient] = None,
) -> RecipePipeline:
    """Wire the default pipeline: logging, conversion config, checkers and repair engine."""
    settings = settings or get_settings()
    configure_logging(settings)

    classifier = classifier or OpenAIChatClient(
        settings.CLASSIFIER_MODEL, settings.CLASSIFIER_TEMPERATURE, api_key=settings.OPENAI_API_KEY
    )
    generator = generator or OpenAIChatClient(
        settings.GENERATOR_MODEL, settings.GENERATOR_TEMPERATURE, api_key=settings.OPENAI_API_KEY
    )
    engine = UnitConversionEngine(ConversionConfig.from_settings(settings))
    orchestrator = ValidationOrchestrator.default(classifier, engine)
    repair_engine = RepairEngine(
        orchestrator, RecipeGenerator(generator), max_iterations=settings.MAX_REPAIR_ITERATIONS
    )
    return RecipePipeline(orchestrator, repair_engine)
