import pytest

from recipeguard.units import ConversionConfig, UnitConversionEngine, format_amount, strip_quantity
from recipeguard.units.engine import contains_keyword

engine = UnitConversionEngine()


@pytest.mark.parametrize(
    "line,expected,unit",
    (
        ("2 cups flour", "336g flour", "cups"),
        ("1 tablespoon olive oil", "15ml olive oil", "tablespoon"),
        ("1 lb chicken", "453.6g chicken", "lb"),
        ("8 oz butter", "226.8g butter", "oz"),
        ("1 cup milk", "240ml milk", "cup"),
        ("1 cup sugar", "168g sugar", "cup"),
        ("2 fl oz milk", "60ml milk", "fl oz"),
        ("2 tablespoons soy sauce", "30ml soy sauce", "tablespoons"),
        ("1 Cup Water", "240ml Water", "cup"),
        ("1 cups", "168g", "cups"),
    ),
)
def test_normalize_ingredient_line_converts(line: str, expected: str, unit: str) -> None:
    got = engine.normalize_ingredient_line(line)
    assert got.changed
    assert got.converted_text == expected
    assert got.original_unit == unit


@pytest.mark.parametrize(
    "line",
    ("336g flour", "3 eggs", "a cup of flour", "1/2 cup flour", "salt to taste", "", "2 cupsflour"),
)
def test_normalize_ingredient_line_leaves_unknown_or_malformed(line: str) -> None:
    got = engine.normalize_ingredient_line(line)
    assert not got.changed
    assert got.converted_text == line
    assert got.original_unit is None


def test_classify_ingredient() -> None:
    assert engine.classify_ingredient("rice milk") == "liquid"
    assert engine.classify_ingredient("whole milk") == "liquid"
    assert engine.classify_ingredient("rice") == "dry"
    assert engine.classify_ingredient("cream") == "unclassified"


@pytest.mark.parametrize(
    "line,expected",
    (
        ("1 cup pasta water", "240ml pasta water"),
        ("2 tablespoons rice vinegar", "30ml rice vinegar"),
        ("1 cup rice milk", "240ml rice milk"),
        ("1 cup salted water", "240ml salted water"),
    ),
)
def test_liquid_keywords_win_over_dry(line: str, expected: str) -> None:
    assert engine.normalize_ingredient_line(line).converted_text == expected


def test_density_is_configurable() -> None:
    dense = UnitConversionEngine(ConversionConfig(dry_density=1.0))
    assert dense.normalize_ingredient_line("1 cup flour").converted_text == "240g flour"


@pytest.mark.parametrize(
    "line,expected,fixed",
    (
        ("2g black pepper", "black pepper", True),
        ("1 clove garlic", "1 head garlic", True),
        ("3 cloves garlic", "1 head garlic", True),
        ("3 slices bread", "1 loaf bread", True),
        ("5 leaves lettuce", "1 head lettuce", True),
        ("1 tsp cinnamon", "cinnamon", True),
        ("1 pinch saffron", "saffron", True),
        ("2 tbsp olive oil", "250ml olive oil", True),
        ("1 tsp baking powder", "100g baking powder", True),
        ("5ml vanilla extract", "50ml vanilla extract", True),
        ("20ml honey", "250g honey", True),
        ("50g tomato", "1 tomato", True),
        ("300g sliced turkey", "200g turkey", True),
        ("cooked rice", "rice", True),
        ("2 cups diced onion", "336g onion", True),
        ("1 oz salt", "salt", True),
        ("1 lb chicken", "453.6g chicken", False),
    ),
)
def test_normalize_shopping_line(line: str, expected: str, fixed: bool) -> None:
    got = engine.normalize_shopping_line(line)
    assert got.changed
    assert got.converted_text == expected
    assert got.fixed is fixed
    assert got.issue


@pytest.mark.parametrize(
    "line",
    ("500g flour", "1 head garlic", "250ml olive oil", "black pepper", "2 cucumbers", "200g turkey", ""),
)
def test_normalize_shopping_line_leaves_realistic_items(line: str) -> None:
    got = engine.normalize_shopping_line(line)
    assert not got.changed
    assert got.converted_text == line
    assert got.issue is None


@pytest.mark.parametrize(
    "line",
    (
        "2 cups flour", "1 tablespoon olive oil", "1 lb chicken", "2g black pepper",
        "1 clove garlic", "3 slices bread", "5ml vanilla extract", "1 oz salt",
        "2 cups diced onion", "300g sliced turkey", "50g tomato",
    ),
)
def test_normalizers_are_idempotent(line: str) -> None:
    once = engine.normalize_ingredient_line(line).converted_text
    assert engine.normalize_ingredient_line(once).converted_text == once

    once = engine.normalize_shopping_line(line).converted_text
    twice = engine.normalize_shopping_line(once)
    assert twice.converted_text == once
    assert not twice.changed


@pytest.mark.parametrize(
    "text,keywords,expected",
    (
        ("ripe tomatoes", ["tomato"], True),
        ("Fresh Basil", ("basil",), True),
        ("saltine crackers", frozenset({"salt"}), False),
        ("", ["salt"], False),
    ),
)
def test_contains_keyword_matches_whole_words(text: str, keywords, expected: bool) -> None:
    assert contains_keyword(text, keywords) is expected


@pytest.mark.parametrize(
    "value,expected",
    ((336.0, "336"), (28.35, "28.4"), (2.25, "2.3"), (453.6, "453.6"), (0.04, "0")),
)
def test_format_amount_rounds_half_up(value: float, expected: str) -> None:
    assert format_amount(value) == expected


@pytest.mark.parametrize(
    "line,expected",
    (
        ("200g flour", "flour"),
        ("2 cups sugar", "sugar"),
        ("1 lemon", "lemon"),
        ("2 garlic cloves", "garlic cloves"),
        ("1.5 kg potatoes", "potatoes"),
        ("2 fl oz milk", "milk"),
        ("salt", "salt"),
    ),
)
def test_strip_quantity(line: str, expected: str) -> None:
    assert strip_quantity(line) == expected
