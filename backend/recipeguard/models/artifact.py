"""Recipe artifact and user constraint models.

Both are frozen: a revision always produces a new Artifact value, so every
checker sees one consistent snapshot for the whole validation pass.
"""

from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from recipeguard.errors import InvalidInputError

# Appliances a user can pick from. Anything not picked is unavailable.
KNOWN_APPLIANCES: tuple[str, ...] = (
    "stove",
    "oven",
    "microwave",
    "pan",
    "kettle",
    "fryer",
    "food_processor",
)


class ChangeMagnitude(str, Enum):
    """How much a turn changed the recipe, used by callers to decide on side effects."""

    NONE = "none"
    MINOR = "minor"
    SIGNIFICANT = "significant"


class RecipeContent(BaseModel):
    """Body of the recipe: long description, ingredients and ordered steps."""

    model_config = ConfigDict(frozen=True)

    long_description: str = ""
    ingredients: tuple[str, ...]
    instructions: tuple[str, ...]


class Artifact(BaseModel):
    """The recipe draft under validation."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    content: RecipeContent
    shopping_list: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "Artifact":
        """Build an artifact from a generator payload.

        Raises:
            InvalidInputError: required fields are missing or have the wrong type
        """
        if isinstance(payload, Artifact):
            return payload
        if not isinstance(payload, Mapping):
            raise InvalidInputError(
                "Artifact",
                f"Expected a mapping for the recipe artifact, got {type(payload).__name__}",
            )
        try:
            return cls.model_validate(dict(payload))
        except PydanticValidationError as e:
            missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
            raise InvalidInputError(
                "Artifact",
                f"Malformed recipe artifact: {', '.join(missing)}",
                {"errors": e.errors(include_url=False)},
            ) from e

    def to_payload(self) -> dict:
        """Serialize to the JSON wire shape."""
        return self.model_dump(mode="json")

    @property
    def ingredients(self) -> tuple[str, ...]:
        return self.content.ingredients

    @property
    def instructions(self) -> tuple[str, ...]:
        return self.content.instructions

    def with_ingredients(self, ingredients: Iterable[str]) -> "Artifact":
        content = self.content.model_copy(update={"ingredients": tuple(ingredients)})
        return self.model_copy(update={"content": content})

    def with_instructions(self, instructions: Iterable[str]) -> "Artifact":
        content = self.content.model_copy(update={"instructions": tuple(instructions)})
        return self.model_copy(update={"content": content})

    def with_shopping_list(self, shopping_list: Iterable[str]) -> "Artifact":
        return self.model_copy(update={"shopping_list": tuple(shopping_list)})


def normalize_allergies(allergies: Any) -> tuple[str, ...]:
    """Normalize allergies from their stored formats to a tuple of names.

    Accepts a mapping of ``{name: active}`` (only active ones are kept),
    a comma-separated string, or any iterable of names. Blank entries are dropped.
    """
    if not allergies:
        return ()
    if isinstance(allergies, Mapping):
        names = [str(key) for key, active in allergies.items() if active is True]
    elif isinstance(allergies, str):
        names = allergies.split(",")
    else:
        names = [str(a) for a in allergies if a is not None]
    return tuple(name.strip() for name in names if name and name.strip())


class UserConstraints(BaseModel):
    """Read-only user constraints the artifact is validated against."""

    model_config = ConfigDict(frozen=True)

    allergies: tuple[str, ...] = ()
    available_appliances: tuple[str, ...] = ()
    unavailable_appliances: tuple[str, ...] = ()
    preferences_text: str = ""
    requested_ingredients: tuple[str, ...] = Field(
        default=(),
        description="Ingredients explicitly requested in the user turn (may include allergens)",
    )
    age: Optional[int] = None
    weight_kg: Optional[float] = None
    gender: Optional[str] = None

    @field_validator("allergies", mode="before")
    @classmethod
    def _normalize_allergies(cls, value: Any) -> tuple[str, ...]:
        return normalize_allergies(value)

    @field_validator("available_appliances", "unavailable_appliances", "requested_ingredients", mode="before")
    @classmethod
    def _normalize_names(cls, value: Any) -> tuple[str, ...]:
        return normalize_allergies(value)

    @classmethod
    def from_profile(
        cls,
        *,
        allergies: Any = None,
        appliances: Any = None,
        preferences_text: Optional[str] = None,
        requested_ingredients: Iterable[str] = (),
        age: Optional[int] = None,
        weight_kg: Optional[float] = None,
        gender: Optional[str] = None,
    ) -> "UserConstraints":
        """Build constraints from a stored user profile.

        Unavailable appliances are every known appliance the user did not select.
        """
        available = tuple(a.lower() for a in normalize_allergies(appliances))
        unavailable = tuple(a for a in KNOWN_APPLIANCES if a not in available)
        return cls(
            allergies=allergies,
            available_appliances=available,
            unavailable_appliances=unavailable,
            preferences_text=preferences_text or "",
            requested_ingredients=tuple(requested_ingredients),
            age=age,
            weight_kg=weight_kg,
            gender=gender,
        )

    @property
    def has_physical_info(self) -> bool:
        return self.age is not None or self.weight_kg is not None or self.gender is not None
