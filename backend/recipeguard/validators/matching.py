"""Shared ingredient/allergen matching.

Matching is loose: substring either way, or a shared word. Over-matching
is accepted.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

# Conversational noise stripped from names before they are shown to the user
FILLER_WORDS: frozenset[str] = frozenset({
    "anyway", "please", "add", "with", "to", "the", "a", "an", "some", "more",
})

# Words that end an "add X" / "with X" phrase in a user message
FILLER_STOP_WORDS: tuple[str, ...] = ("anyway", "please", "though", "still", "even", "just", "only")

_STOP = "|".join(FILLER_STOP_WORDS)
_ADD_RE = re.compile(rf"\badd\s+(?:more\s+)?([a-z\s]+?)(?:\s+(?:{_STOP})\b|\s+to\b|\s+in\b|$|,|\.)")
_WITH_RE = re.compile(rf"\bwith\s+([a-z\s]+?)(?:\s+(?:{_STOP})\b|\s+and\b|\s+or\b|$|,|\.)")
_LIST_SEPARATOR_RE = re.compile(r"\s+(?:and|or)\s+")


@dataclass(frozen=True)
class AllergenMatch:
    """A requested ingredient that matched one of the user's allergies."""

    allergy: str
    ingredient: str

    @property
    def allergy_name(self) -> str:
        return self.allergy.replace("_", " ").strip()

    @property
    def ingredient_name(self) -> str:
        return clean_name(self.ingredient)

    @property
    def display_name(self) -> str:
        """``"peanuts (nuts)"``, or just the name when ingredient and allergy agree."""
        ingredient, allergy = self.ingredient_name, self.allergy_name
        if ingredient.lower() == allergy.lower():
            return allergy
        return f"{ingredient} ({allergy})"


def clean_name(name: str) -> str:
    """Strip filler words; falls back to the original text if nothing is left."""
    words = [w for w in name.replace("_", " ").split() if w.lower() not in FILLER_WORDS]
    return " ".join(words) if words else name.strip()


def _tokens(text: str) -> set[str]:
    return set(text.replace("_", " ").lower().split())


def matches_allergy(ingredient: str, allergy: str) -> bool:
    """True when the ingredient and allergy overlap by substring or share a word."""
    ingredient = ingredient.strip().lower()
    allergy = allergy.replace("_", " ").strip().lower()
    if not ingredient or not allergy:
        return False
    return (
        allergy in ingredient
        or ingredient in allergy
        or bool(_tokens(ingredient) & _tokens(allergy))
    )


def find_requested_allergens(
    requested_ingredients: Iterable[str], allergies: Iterable[str]
) -> list[AllergenMatch]:
    """Pair every requested ingredient with each allergy it matches, in request order."""
    allergies = [a for a in allergies if a and a.strip()]
    matches: list[AllergenMatch] = []
    for ingredient in requested_ingredients:
        if not ingredient or not ingredient.strip():
            continue
        for allergy in allergies:
            if matches_allergy(ingredient, allergy):
                match = AllergenMatch(allergy=allergy, ingredient=ingredient.strip())
                if match not in matches:
                    matches.append(match)
    return matches


def mentions_ingredient(step: str, ingredient: str) -> bool:
    """Substring, per-word substring, or singular/plural toggled match."""
    step_lower = step.lower()
    name = ingredient.strip().lower()
    if not name:
        return False
    if name in step_lower:
        return True
    if any(len(word) > 2 and word in step_lower for word in name.split()):
        return True
    if name.endswith("s"):
        return len(name) > 3 and name[:-1] in step_lower
    return f"{name}s" in step_lower


def find_mention_steps(instructions: Sequence[str], matches: Sequence[AllergenMatch]) -> list[int]:
    """0-based indices of every step that mentions a matched ingredient."""
    names = list(dict.fromkeys(m.ingredient_name for m in matches))
    return [
        index
        for index, step in enumerate(instructions)
        if any(mentions_ingredient(step, name) for name in names)
    ]


def allergen_names(matches: Sequence[AllergenMatch]) -> list[str]:
    """Every allergy and ingredient name a personalized warning must mention."""
    names: list[str] = []
    for match in matches:
        for name in (match.allergy_name, match.ingredient_name):
            if name and name.lower() not in (n.lower() for n in names):
                names.append(name)
    return names


def warning_display_name(matches: Sequence[AllergenMatch]) -> str:
    """Human-readable allergen list for the warning template: ``"a, b and c"``."""
    labels = list(dict.fromkeys(m.display_name for m in matches))
    if not labels:
        return "the allergen"
    if len(labels) == 1:
        return labels[0]
    return f"{', '.join(labels[:-1])} and {labels[-1]}"


def extract_requested_ingredients(message: str) -> list[str]:
    """Ingredients the user explicitly asked for ("add peanuts", "with sesame please")."""
    if not message:
        return []
    text = message.lower()
    ingredients: list[str] = []
    for pattern in (_ADD_RE, _WITH_RE):
        for match in pattern.finditer(text):
            # "add salt and pepper" requests both
            for phrase in _LIST_SEPARATOR_RE.split(match.group(1)):
                words = [w for w in phrase.split() if w not in FILLER_STOP_WORDS]
                ingredient = " ".join(words)
                if len(ingredient) > 2 and ingredient not in ingredients:
                    ingredients.append(ingredient)
    return ingredients
