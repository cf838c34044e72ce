import itertools

import pytest

from conftest import ExplodingChecker, FailingTextClient, FakeTextClient, StaticChecker, make_artifact
from recipeguard.errors import ValidationError
from recipeguard.models import KNOWN_APPLIANCES, UserConstraints, Violation, ViolationKind
from recipeguard.validators.engine import ValidationOrchestrator, default_checkers


def _violation(kind: ViolationKind, message: str) -> Violation:
    return Violation(kind=kind, message=message, fix_hint="fix it")


A = _violation(ViolationKind.MISSING_EMOJI, "a")
B = _violation(ViolationKind.NON_METRIC_UNIT_IN_INGREDIENTS, "b")
C = _violation(ViolationKind.PREFERENCE_VIOLATION, "c")


@pytest.mark.asyncio
@pytest.mark.parametrize("delays", list(itertools.permutations((0.0, 0.01, 0.02))))
async def test_aggregation_ignores_completion_order(artifact, no_constraints, delays) -> None:
    checkers = [
        StaticChecker("first", [A], delay=delays[0]),
        StaticChecker("second", [B], delay=delays[1]),
        StaticChecker("third", [C], delay=delays[2]),
    ]
    result = await ValidationOrchestrator(checkers).validate_all(artifact, no_constraints)

    assert list(result.violations) == [A, B, C]
    assert list(result.fix_instructions) == ["first fix", "second fix", "third fix"]
    assert list(result.per_checker) == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_exploding_checker_counts_as_passed(artifact, no_constraints) -> None:
    orchestrator = ValidationOrchestrator([ExplodingChecker(), StaticChecker("units", [B])])

    result = await orchestrator.validate_all(artifact, no_constraints)

    assert list(result.violations) == [B]
    assert result.per_checker["exploding"].valid


@pytest.mark.asyncio
async def test_empty_checker_set_is_valid(artifact, no_constraints) -> None:
    result = await ValidationOrchestrator([]).validate_all(artifact, no_constraints)
    assert result.valid
    assert result.violations == ()


@pytest.mark.asyncio
async def test_ensure_valid_raises_with_violations(artifact, no_constraints) -> None:
    orchestrator = ValidationOrchestrator([StaticChecker("units", [B])])

    with pytest.raises(ValidationError) as exc:
        await orchestrator.ensure_valid(artifact, no_constraints)

    assert exc.value.violations == [B]


@pytest.mark.asyncio
async def test_ensure_valid_returns_clean_result(artifact, no_constraints) -> None:
    result = await ValidationOrchestrator([StaticChecker("units")]).ensure_valid(artifact, no_constraints)
    assert result.valid


@pytest.mark.asyncio
async def test_default_checkers_with_unreachable_model(peanut_constraints) -> None:
    """Model-backed checkers fail open; deterministic ones still report."""
    artifact = make_artifact(ingredients=["2 cups flour", "50g peanuts"])
    orchestrator = ValidationOrchestrator.default(FailingTextClient())

    result = await orchestrator.validate_all(artifact, peanut_constraints)

    assert [c.name for c in orchestrator.checkers] == [
        "allergen_warning", "ingredient_allergy", "metric_unit", "appliance", "completeness", "preference",
    ]
    assert result.kinds() == {ViolationKind.MISSING_EMOJI, ViolationKind.NON_METRIC_UNIT_IN_INGREDIENTS}


@pytest.mark.asyncio
async def test_default_checkers_pass_compliant_recipe() -> None:
    warning = "⚠ WARNING: This step contains peanuts (nuts) which you are allergic to. Proceed with extreme caution. "
    artifact = make_artifact(instructions=[warning + "Mix flour and peanuts.", "Bake 20 min."])
    constraints = UserConstraints.from_profile(
        allergies={"nuts": True, "dairy": False},
        appliances=list(KNOWN_APPLIANCES),
        requested_ingredients=["peanuts"],
    )
    client = FakeTextClient([{"unmentioned_ingredients": [], "extra_ingredients": []}])

    result = await ValidationOrchestrator(default_checkers(client)).validate_all(artifact, constraints)

    assert result.valid
