"""External text capability: prompt in, JSON out.

Checkers and the repair generator depend only on ``TextClient``; the OpenAI
chat implementation is one concrete backend. Every failure surfaces as
``ExecutionError`` so callers can decide whether to fail open.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Type, TypeVar

import structlog
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from recipeguard.config import get_settings
from recipeguard.errors import ExecutionError
from recipeguard.llm.json_parsing import parse_json_response

logger = structlog.get_logger()

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class TextClient(ABC):
    """Sends a system instruction and a prompt, returns the parsed JSON response."""

    name: str = "TextClient"

    @abstractmethod
    async def _complete(self, system_instructions: str, prompt: str) -> str:
        """Return the raw model text for one request."""
        ...

    async def ask(
        self,
        system_instructions: str,
        prompt: str,
        schema: Optional[Type[SchemaT]] = None,
    ) -> Any:
        """Run one request and parse its JSON response.

        Args:
            system_instructions: Role and rules for the model
            prompt: The request itself
            schema: Optional pydantic model the JSON must validate against

        Returns:
            The parsed JSON, or an instance of ``schema`` when one is given

        Raises:
            ExecutionError: the call failed, or the response is not usable JSON
        """
        try:
            raw = await self._complete(system_instructions, prompt)
        except ExecutionError:
            raise
        except Exception as e:
            raise ExecutionError(self.name, f"Text request failed: {e}") from e

        try:
            data = parse_json_response(raw, source=self.name)
        except ValueError as e:
            raise ExecutionError(self.name, str(e), {"response_preview": raw[:500]}) from e

        if schema is None:
            return data
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            raise ExecutionError(
                self.name,
                f"Response does not match {schema.__name__}",
                {"errors": e.errors(include_url=False)},
            ) from e


class OpenAIChatClient(TextClient):
    """OpenAI chat model in JSON mode, with exponential-backoff retries."""

    def __init__(
        self,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        retry_attempts: Optional[int] = None,
        api_key: Optional[str] = None,
    ):
        settings = get_settings()
        self.api_key = settings.OPENAI_API_KEY if api_key is None else api_key
        self.model_name = model_name or settings.GENERATOR_MODEL
        self.temperature = settings.GENERATOR_TEMPERATURE if temperature is None else temperature
        self.max_output_tokens = max_output_tokens or settings.LLM_MAX_OUTPUT_TOKENS
        self.retry_attempts = retry_attempts or settings.LLM_RETRY_ATTEMPTS
        self.name = f"OpenAIChatClient[{self.model_name}]"
        self._llm = None

    @property
    def llm(self) -> ChatOpenAI:
        """Lazy-initialize the LLM client."""
        if self._llm is None:
            self._llm = ChatOpenAI(
                model=self.model_name,
                api_key=self.api_key,
                temperature=self.temperature,
                max_tokens=self.max_output_tokens,
                model_kwargs={"response_format": {"type": "json_object"}},
            )
        return self._llm

    async def _complete(self, system_instructions: str, prompt: str) -> str:
        messages = [
            SystemMessage(content=system_instructions),
            HumanMessage(content=prompt),
        ]
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            retry=retry_if_exception_type(Exception),
            before_sleep=lambda retry_state: logger.warning(
                "llm_retry",
                model=self.model_name,
                attempt=retry_state.attempt_number,
                wait=retry_state.next_action.sleep,
            ),
            reraise=True,
        ):
            with attempt:
                response = await self.llm.ainvoke(messages)
        return response.content
