import pytest

from conftest import make_artifact
from recipeguard.models import UserConstraints, ViolationKind
from recipeguard.validators.ingredient_allergy import IngredientAllergyChecker

checker = IngredientAllergyChecker()


@pytest.mark.asyncio
async def test_unrequested_allergen_is_flagged(artifact) -> None:
    result = await checker.check(artifact, UserConstraints(allergies=["nuts"]))

    assert [v.kind for v in result.violations] == [ViolationKind.ALLERGEN_IN_INGREDIENTS]
    assert "50g peanuts" in result.violations[0].message
    assert "'peanuts'" in result.violations[0].fix_hint


@pytest.mark.asyncio
async def test_requested_allergen_is_left_to_the_warning_checker(artifact, peanut_constraints) -> None:
    assert (await checker.check(artifact, peanut_constraints)).valid


@pytest.mark.asyncio
async def test_no_allergies_passes(artifact, no_constraints) -> None:
    assert (await checker.check(artifact, no_constraints)).valid
