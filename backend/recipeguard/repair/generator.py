"""Model-assisted repair — asks the external generator for a corrected recipe."""

import json
from collections import defaultdict
from typing import Any, Sequence

import structlog

from recipeguard.errors import ExecutionError, InvalidInputError
from recipeguard.llm.client import TextClient
from recipeguard.models import Artifact, Violation
from recipeguard.repair.classifier import step_index_of

logger = structlog.get_logger()

CRITICAL_RULES = """CRITICAL RULES FOR FIXING:
1. Allergen warnings MUST be in the INSTRUCTION STEP where the allergen is added, NOT in the description
2. The warning MUST start with "⚠ WARNING:" (capitalized, not "warning" or "Warning") at the BEGINNING of the instruction step
3. The warning MUST mention the specific allergen from the user's allergy list
4. Use ONLY clean allergen/ingredient names - do NOT include filler words from user messages (e.g., use "sesame" not "sesame anyway")
5. The phrase "Proceed with extreme caution" must appear EXACTLY ONCE - do NOT duplicate it
6. You MUST fix ALL violations listed above - check each step mentioned
7. Do NOT add warnings to steps that don't contain the allergen
8. Do NOT remove warnings from steps that already have them correctly formatted"""

_CAMEL_CASE_KEYS = {"shoppingList": "shopping_list", "longDescription": "long_description"}


def build_repair_instructions(violations: Sequence[Violation]) -> str:
    """Group violations by 1-based step number, then list the rest."""
    by_step: dict[int, list[Violation]] = defaultdict(list)
    other: list[Violation] = []
    for violation in violations:
        index = step_index_of(violation)
        if index is None:
            other.append(violation)
        else:
            by_step[index + 1].append(violation)

    lines = []
    for step_number in sorted(by_step):
        lines.append(f"Step {step_number} violations:")
        for violation in by_step[step_number]:
            lines.append(f"  - {violation.kind.value}: {violation.message}")
            lines.append(f"    Fix: {violation.fix_hint}")
    for violation in other:
        lines.append(f"{violation.kind.value}: {violation.message}")
        lines.append(f"  Fix: {violation.fix_hint}")
    return "\n".join(lines)


def build_repair_prompt(artifact: Artifact, violations: Sequence[Violation], user_message: str) -> str:
    return f"""CRITICAL: The recipe you just generated has validation violations that MUST be fixed.

Original user request:
{user_message or "N/A"}

Current Recipe (JSON):
{json.dumps(artifact.to_payload(), indent=2, ensure_ascii=False)}

Validation Violations Found:
{build_repair_instructions(violations)}

{CRITICAL_RULES}

Return the COMPLETE fixed recipe as JSON with ALL fields (title, description, content with long_description, ingredients and instructions, shopping_list).
Do NOT change anything that wasn't mentioned in the violations - only fix the violations."""


def _normalize_payload(data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    data = {_CAMEL_CASE_KEYS.get(k, k): v for k, v in data.items()}
    content = data.get("content")
    if isinstance(content, dict):
        data["content"] = {_CAMEL_CASE_KEYS.get(k, k): v for k, v in content.items()}
    return data


class RecipeGenerator:
    """Regenerates a complete artifact from the current one plus residual violations."""

    system_instructions = """You are a careful recipe editor. You receive a recipe as JSON together with a list of validation violations.
Return ONLY the complete corrected recipe as a JSON object with the keys:
"title", "description", "content" ({"long_description", "ingredients", "instructions"}) and "shopping_list".
Use metric units (g, ml) in ingredients and realistic purchase amounts in the shopping list."""

    def __init__(self, client: TextClient):
        self.client = client

    async def regenerate(self, artifact: Artifact, violations: Sequence[Violation], user_message: str) -> Artifact:
        """Ask for a corrected recipe.

        Raises:
            ExecutionError: the call failed or returned something that is not a recipe
        """
        prompt = build_repair_prompt(artifact, violations, user_message)
        data = await self.client.ask(self.system_instructions, prompt)
        try:
            return Artifact.from_payload(_normalize_payload(data))
        except InvalidInputError as e:
            raise ExecutionError("RecipeGenerator", f"Generator returned a malformed recipe: {e.message}", e.details) from e
