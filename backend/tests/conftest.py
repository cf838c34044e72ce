"""Shared fixtures and fakes. No test talks to a real model."""

import asyncio
import json
from typing import Any, Optional, Sequence

import pytest

from recipeguard.errors import ExecutionError
from recipeguard.llm.client import TextClient
from recipeguard.models import Artifact, UserConstraints, ValidationResult, Violation
from recipeguard.validators.base import BaseChecker


class FakeTextClient(TextClient):
    """Replays scripted raw responses in order; repeats the last one when exhausted."""

    name = "FakeTextClient"

    def __init__(self, responses: Sequence[Any] = ("{}",)):
        self.responses = [r if isinstance(r, str) else json.dumps(r) for r in responses]
        self.calls: list[tuple[str, str]] = []

    async def _complete(self, system_instructions: str, prompt: str) -> str:
        self.calls.append((system_instructions, prompt))
        index = min(len(self.calls), len(self.responses)) - 1
        return self.responses[index]


class FailingTextClient(TextClient):
    """Raises on every call, like an unreachable provider."""

    name = "FailingTextClient"

    def __init__(self):
        self.calls = 0

    async def _complete(self, system_instructions: str, prompt: str) -> str:
        self.calls += 1
        raise ConnectionError("provider unreachable")


class ScriptedGeneratorClient(TextClient):
    """Returns artifact payloads in order and raises ExecutionError for ``None`` entries."""

    name = "ScriptedGeneratorClient"

    def __init__(self, payloads: Sequence[Optional[dict]]):
        self.payloads = list(payloads)
        self.calls = 0

    async def _complete(self, system_instructions: str, prompt: str) -> str:
        self.calls += 1
        payload = self.payloads[min(self.calls, len(self.payloads)) - 1]
        if payload is None:
            raise ExecutionError(self.name, "generator unavailable")
        return json.dumps(payload)


class StaticChecker(BaseChecker):
    """Returns fixed violations after an optional delay."""

    def __init__(self, name: str, violations: Sequence[Violation] = (), delay: float = 0.0):
        self._name = name
        self.violations = tuple(violations)
        self.delay = delay

    @property
    def name(self) -> str:
        return self._name

    async def check(self, artifact: Artifact, constraints: UserConstraints) -> ValidationResult:
        await asyncio.sleep(self.delay)
        return ValidationResult.from_violations(self.violations, [f"{self._name} fix"])


class ExplodingChecker(BaseChecker):
    @property
    def name(self) -> str:
        return "exploding"

    async def check(self, artifact: Artifact, constraints: UserConstraints) -> ValidationResult:
        raise RuntimeError("boom")


def make_artifact(
    ingredients: Sequence[str] = ("200g flour", "50g peanuts"),
    instructions: Sequence[str] = ("Mix flour and peanuts.", "Bake 20 min."),
    shopping_list: Sequence[str] = ("1kg flour", "200g peanuts"),
    title: str = "Peanut Cookies",
    description: str = "Crunchy cookies",
) -> Artifact:
    return Artifact.from_payload({
        "title": title,
        "description": description,
        "content": {
            "long_description": "Simple cookies.",
            "ingredients": list(ingredients),
            "instructions": list(instructions),
        },
        "shopping_list": list(shopping_list),
    })


@pytest.fixture
def artifact() -> Artifact:
    return make_artifact()


@pytest.fixture
def peanut_constraints() -> UserConstraints:
    return UserConstraints(allergies=["nuts"], requested_ingredients=["peanuts"])


@pytest.fixture
def no_constraints() -> UserConstraints:
    return UserConstraints()
