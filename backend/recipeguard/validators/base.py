"""Base checker — abstract class implementing the Strategy Pattern.

Each checker is a standalone, independently testable unit.
New checkers are added without modifying the orchestrator.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Type, TypeVar

from pydantic import BaseModel

from recipeguard.llm.client import TextClient
from recipeguard.models import (
    Artifact,
    ConvertedData,
    UserConstraints,
    ValidationResult,
    Violation,
    ViolationField,
    ViolationKind,
)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class BaseChecker(ABC):
    """Abstract base for all recipe checkers.

    Contract:
        - check() sees one immutable artifact snapshot and never mutates it
        - check() returns a ValidationResult; no exception escapes for well-formed input
        - the only suspension point is an external text call
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable name used for logging and per-checker results."""
        ...

    @abstractmethod
    async def check(self, artifact: Artifact, constraints: UserConstraints) -> ValidationResult:
        """Run the checks against the artifact.

        Args:
            artifact: Recipe snapshot under validation
            constraints: Read-only user constraints

        Returns:
            ValidationResult (valid when no violations were found)
        """
        ...

    # ── Helper Methods ──

    def _violation(
        self,
        kind: ViolationKind,
        message: str,
        fix_hint: str,
        field: ViolationField = ViolationField.GENERAL,
        step_index: Optional[int] = None,
        payload: Optional[ConvertedData] = None,
    ) -> Violation:
        """Convenience method to create a Violation."""
        return Violation(
            kind=kind,
            message=message,
            field=field,
            fix_hint=fix_hint,
            step_index=step_index,
            payload=payload,
        )

    @staticmethod
    def _numbered(lines: Iterable[str]) -> str:
        """Render lines as a 1-based numbered list for prompts."""
        return "\n".join(f"{idx}. {line}" for idx, line in enumerate(lines, start=1))


class ModelBackedChecker(BaseChecker):
    """Checker that asks the external text capability and fails open when it cannot."""

    system_instructions: str = ""

    def __init__(self, client: TextClient):
        self.client = client

    async def _ask(self, prompt: str, schema: Type[SchemaT]) -> SchemaT:
        return await self.client.ask(self.system_instructions, prompt, schema)
