import pytest

from conftest import make_artifact
from recipeguard.models import UserConstraints, ViolationKind
from recipeguard.validators.allergen_warning import AllergenWarningChecker, has_warning, step_window

WARNING = "⚠ WARNING: This step contains peanuts (nuts) which you are allergic to. Proceed with extreme caution. "

checker = AllergenWarningChecker()


@pytest.mark.asyncio
async def test_missing_warning_is_reported_on_the_mention_step(peanut_constraints) -> None:
    artifact = make_artifact(instructions=["Mix flour and peanuts.", "Bake 20 min."])
    result = await checker.check(artifact, peanut_constraints)

    assert not result.valid
    assert [v.kind for v in result.violations] == [ViolationKind.MISSING_EMOJI]
    assert result.violations[0].step_index == 0
    assert "step 1" in result.violations[0].message
    assert result.fix_instructions


@pytest.mark.asyncio
async def test_personalized_warning_passes(peanut_constraints) -> None:
    artifact = make_artifact(instructions=[WARNING + "Mix flour and peanuts.", "Bake 20 min."])
    result = await checker.check(artifact, peanut_constraints)
    assert result.valid


@pytest.mark.asyncio
async def test_warning_in_adjacent_step_counts(peanut_constraints) -> None:
    artifact = make_artifact(
        instructions=["Preheat the oven.", "⚠️ WARNING: the next step adds peanuts (nuts).", "Fold in the peanuts."]
    )
    result = await checker.check(artifact, peanut_constraints)
    assert result.valid


@pytest.mark.asyncio
async def test_generic_warning_lists_missing_names() -> None:
    constraints = UserConstraints(allergies=["milk"], requested_ingredients=["milk chocolate"])
    artifact = make_artifact(
        instructions=["Toast the bread.", "⚠ WARNING: contains allergens. Add chocolate.", "Serve."]
    )
    result = await checker.check(artifact, constraints)

    assert [v.kind for v in result.violations] == [ViolationKind.GENERIC_WARNING]
    assert result.violations[0].step_index == 1
    assert "milk chocolate" in result.violations[0].message


@pytest.mark.asyncio
async def test_miscased_warning_is_a_format_violation(peanut_constraints) -> None:
    artifact = make_artifact(instructions=["⚠ Warning: peanuts (nuts) ahead. Mix flour and peanuts."])
    result = await checker.check(artifact, peanut_constraints)
    assert [v.kind for v in result.violations] == [ViolationKind.INCORRECT_WARNING_FORMAT]


@pytest.mark.asyncio
async def test_allergen_missing_from_instructions(peanut_constraints) -> None:
    artifact = make_artifact(instructions=["Mix flour and sugar.", "Bake 20 min."])
    result = await checker.check(artifact, peanut_constraints)

    assert [v.kind for v in result.violations] == [ViolationKind.ALLERGEN_NOT_IN_INSTRUCTIONS]
    assert result.violations[0].step_index is None


@pytest.mark.asyncio
async def test_no_requested_allergen_means_nothing_to_check(artifact) -> None:
    constraints = UserConstraints(allergies=["nuts"], requested_ingredients=["sugar"])
    assert (await checker.check(artifact, constraints)).valid
    assert (await checker.check(artifact, UserConstraints())).valid


@pytest.mark.asyncio
async def test_shared_warning_step_is_reported_once() -> None:
    constraints = UserConstraints(allergies=["nuts", "sesame"], requested_ingredients=["peanuts", "sesame"])
    artifact = make_artifact(instructions=["Add peanuts.", "⚠ WARNING: careful.", "Add sesame."])
    result = await checker.check(artifact, constraints)

    generic = [v for v in result.violations if v.kind is ViolationKind.GENERIC_WARNING]
    assert len(generic) == 1
    assert generic[0].step_index == 1


def test_has_warning_requires_capitalized_token() -> None:
    assert has_warning("⚠ WARNING: hot")
    assert has_warning("⚠️ WARNING: hot")
    assert not has_warning("⚠ warning: hot")
    assert not has_warning("WARNING: hot")


def test_step_window_is_clamped() -> None:
    steps = ["a", "b", "c"]
    assert step_window(steps, 0) == [0, 1]
    assert step_window(steps, 1) == [0, 1, 2]
    assert step_window(steps, 2) == [1, 2]
