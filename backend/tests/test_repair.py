import pytest

from conftest import ScriptedGeneratorClient, make_artifact
from recipeguard.models import UserConstraints, Violation, ViolationKind
from recipeguard.repair import (
    REPAIR_STRATEGY,
    ProgrammaticFixer,
    RecipeGenerator,
    RepairEngine,
    RepairStatus,
    RepairStrategy,
    classify,
    split_violations,
)
from recipeguard.repair.classifier import step_index_of
from recipeguard.repair.generator import build_repair_prompt
from recipeguard.validators import (
    AllergenWarningChecker,
    IngredientAllergyChecker,
    MetricUnitChecker,
    ValidationOrchestrator,
)

WARNING = "⚠ WARNING: This step contains peanuts (nuts) which you are allergic to. Proceed with extreme caution. "
NUT_ALLERGY = UserConstraints(allergies=["nuts"])
NUT_FREE = make_artifact(
    ingredients=["200g flour", "50g sugar"],
    instructions=["Mix flour and sugar.", "Bake 20 min."],
    shopping_list=["1kg flour", "1kg sugar"],
)


def _violation(kind: ViolationKind, message: str = "problem", step_index=None) -> Violation:
    return Violation(kind=kind, message=message, fix_hint="fix it", step_index=step_index)


def _engine(client: ScriptedGeneratorClient, max_iterations: int = 3) -> RepairEngine:
    orchestrator = ValidationOrchestrator([
        AllergenWarningChecker(),
        IngredientAllergyChecker(),
        MetricUnitChecker(),
    ])
    return RepairEngine(orchestrator, RecipeGenerator(client), max_iterations=max_iterations)


# ── Classifier ──


def test_every_kind_has_a_strategy() -> None:
    assert set(REPAIR_STRATEGY) == set(ViolationKind)


@pytest.mark.parametrize(
    "kind,strategy",
    (
        (ViolationKind.MISSING_EMOJI, RepairStrategy.DETERMINISTIC),
        (ViolationKind.GENERIC_WARNING, RepairStrategy.DETERMINISTIC),
        (ViolationKind.UNREALISTIC_SHOPPING_AMOUNT, RepairStrategy.DETERMINISTIC),
        (ViolationKind.ALLERGEN_NOT_IN_INSTRUCTIONS, RepairStrategy.MODEL_REQUIRED),
        (ViolationKind.PREFERENCE_VIOLATION, RepairStrategy.MODEL_REQUIRED),
        (ViolationKind.UNRECOGNIZED, RepairStrategy.MODEL_REQUIRED),
    ),
)
def test_classify(kind: ViolationKind, strategy: RepairStrategy) -> None:
    assert classify(kind) is strategy
    assert classify(_violation(kind)) is strategy


def test_unknown_wire_type_is_model_required() -> None:
    violation = Violation.from_wire({"type": "made_up_kind", "message": "?"})
    assert violation.kind is ViolationKind.UNRECOGNIZED
    assert classify(violation) is RepairStrategy.MODEL_REQUIRED


def test_split_violations_keeps_order() -> None:
    a = _violation(ViolationKind.PREFERENCE_VIOLATION, "a")
    b = _violation(ViolationKind.MISSING_EMOJI, "b")
    c = _violation(ViolationKind.NON_METRIC_UNIT_IN_INGREDIENTS, "c")
    assert split_violations([a, b, c]) == ([b, c], [a])


def test_step_index_falls_back_to_message() -> None:
    assert step_index_of(_violation(ViolationKind.MISSING_EMOJI, "in step 3", step_index=1)) == 1
    assert step_index_of(_violation(ViolationKind.MISSING_EMOJI, "missing in instruction step 3")) == 2
    assert step_index_of(_violation(ViolationKind.MISSING_EMOJI, "no step here")) is None


# ── Programmatic fixes ──


def test_fixer_rewrites_miscased_warning(peanut_constraints) -> None:
    artifact = make_artifact(instructions=["⚠ Warning: peanuts (nuts) ahead. Mix flour and peanuts."])
    violation = _violation(ViolationKind.INCORRECT_WARNING_FORMAT, step_index=0)

    fixed, count = ProgrammaticFixer().apply(artifact, [violation], peanut_constraints)

    assert count == 1
    assert fixed.instructions[0] == "⚠ WARNING: peanuts (nuts) ahead. Mix flour and peanuts."


def test_fixer_personalizes_generic_warning() -> None:
    constraints = UserConstraints(allergies=["milk"], requested_ingredients=["milk chocolate"])
    artifact = make_artifact(instructions=["Toast.", "⚠ WARNING: contains allergens. Add chocolate."])
    violation = _violation(ViolationKind.GENERIC_WARNING, step_index=1)

    fixed, _ = ProgrammaticFixer().apply(artifact, [violation], constraints)

    assert fixed.instructions[1] == (
        "⚠ WARNING: This step contains milk chocolate (milk) which you are allergic to. "
        "Proceed with extreme caution. Add chocolate."
    )
    assert fixed.instructions[0] == "Toast."


@pytest.mark.parametrize("terminator", ("!", "?", ";", "."))
def test_fixer_keeps_text_after_generic_warning_clause(terminator: str) -> None:
    constraints = UserConstraints(allergies=["milk"], requested_ingredients=["milk chocolate"])
    step = f"⚠ WARNING: contains allergens{terminator} Stir in the chocolate and bake 5 min."
    artifact = make_artifact(instructions=["Toast.", step])
    violation = _violation(ViolationKind.GENERIC_WARNING, step_index=1)

    fixed, _ = ProgrammaticFixer().apply(artifact, [violation], constraints)

    assert fixed.instructions[1] == (
        "⚠ WARNING: This step contains milk chocolate (milk) which you are allergic to. "
        "Proceed with extreme caution. Stir in the chocolate and bake 5 min."
    )


def test_fixer_ignores_out_of_range_steps(artifact, peanut_constraints) -> None:
    violation = _violation(ViolationKind.MISSING_EMOJI, step_index=7)
    fixed, count = ProgrammaticFixer().apply(artifact, [violation], peanut_constraints)
    assert count == 0
    assert fixed == artifact


# ── Repair loop ──


@pytest.mark.asyncio
async def test_missing_warning_is_fixed_without_model(artifact, peanut_constraints) -> None:
    client = ScriptedGeneratorClient([None])

    outcome = await _engine(client).repair(artifact, peanut_constraints, "add peanuts anyway")

    assert outcome.status is RepairStatus.FIXED_PROGRAMMATICALLY
    assert outcome.artifact.instructions[0] == WARNING + "Mix flour and peanuts."
    assert outcome.artifact.instructions[1] == "Bake 20 min."
    assert outcome.model_iterations == 0
    assert client.calls == 0
    assert outcome.violations == ()


@pytest.mark.asyncio
async def test_units_and_warning_fixed_together(peanut_constraints) -> None:
    artifact = make_artifact(ingredients=["2 cups flour", "50g peanuts"], shopping_list=["1 clove garlic"])

    outcome = await _engine(ScriptedGeneratorClient([None])).repair(artifact, peanut_constraints)

    assert outcome.status is RepairStatus.FIXED_PROGRAMMATICALLY
    assert outcome.artifact.ingredients == ("336g flour", "50g peanuts")
    assert outcome.artifact.shopping_list == ("1 head garlic",)
    assert outcome.programmatic_fixes_applied == 3


@pytest.mark.asyncio
async def test_clean_artifact_skips_repair() -> None:
    client = ScriptedGeneratorClient([None])
    outcome = await _engine(client).repair(NUT_FREE, NUT_ALLERGY)
    assert outcome.status is RepairStatus.CLEAN
    assert outcome.artifact == NUT_FREE
    assert client.calls == 0


@pytest.mark.asyncio
async def test_model_fix_converges(artifact) -> None:
    payload = NUT_FREE.to_payload()
    payload["shoppingList"] = payload.pop("shopping_list")
    client = ScriptedGeneratorClient([payload])

    outcome = await _engine(client).repair(artifact, NUT_ALLERGY, "cookies please")

    assert outcome.status is RepairStatus.FIXED_BY_MODEL
    assert outcome.artifact == NUT_FREE
    assert outcome.model_iterations == 1
    assert outcome.converged


@pytest.mark.asyncio
async def test_model_fix_is_bounded(artifact) -> None:
    client = ScriptedGeneratorClient([artifact.to_payload()])

    outcome = await _engine(client, max_iterations=3).repair(artifact, NUT_ALLERGY)

    assert outcome.status is RepairStatus.GAVE_UP
    assert not outcome.converged
    assert client.calls == 3
    assert outcome.model_iterations == 3
    assert outcome.artifact is not None
    assert {v.kind for v in outcome.violations} == {ViolationKind.ALLERGEN_IN_INGREDIENTS}


@pytest.mark.asyncio
async def test_failed_call_consumes_an_iteration(artifact) -> None:
    client = ScriptedGeneratorClient([None, {"title": "broken"}, NUT_FREE.to_payload()])

    outcome = await _engine(client).repair(artifact, NUT_ALLERGY)

    assert outcome.status is RepairStatus.FIXED_BY_MODEL
    assert outcome.model_iterations == 3
    assert client.calls == 3


@pytest.mark.asyncio
async def test_all_calls_failing_returns_last_artifact(artifact) -> None:
    client = ScriptedGeneratorClient([None])

    outcome = await _engine(client, max_iterations=2).repair(artifact, NUT_ALLERGY)

    assert outcome.status is RepairStatus.GAVE_UP
    assert outcome.artifact == artifact
    assert client.calls == 2


@pytest.mark.asyncio
async def test_zero_budget_gives_up_without_calls(artifact) -> None:
    client = ScriptedGeneratorClient([NUT_FREE.to_payload()])
    outcome = await _engine(client, max_iterations=0).repair(artifact, NUT_ALLERGY)
    assert outcome.status is RepairStatus.GAVE_UP
    assert client.calls == 0


@pytest.mark.asyncio
async def test_given_violations_are_not_revalidated_first(artifact, no_constraints) -> None:
    client = ScriptedGeneratorClient([None])
    outcome = await _engine(client).repair(artifact, no_constraints, violations=[])
    assert outcome.status is RepairStatus.CLEAN


def test_repair_prompt_groups_by_step(artifact) -> None:
    violations = [
        _violation(ViolationKind.MISSING_EMOJI, "emoji missing", step_index=0),
        _violation(ViolationKind.GENERIC_WARNING, "too generic", step_index=0),
        _violation(ViolationKind.PREFERENCE_VIOLATION, "too sweet"),
    ]

    prompt = build_repair_prompt(artifact, violations, "add peanuts anyway")

    assert "Step 1 violations:\n  - missing_emoji: emoji missing" in prompt
    assert "  - generic_warning: too generic" in prompt
    assert "preference_violation: too sweet" in prompt
    assert "add peanuts anyway" in prompt
    assert '"Peanut Cookies"' in prompt
    assert "EXACTLY ONCE" in prompt
