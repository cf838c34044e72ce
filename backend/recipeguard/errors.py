"""Error taxonomy for checkers, the external text capability and the pipeline.

- InvalidInputError: malformed caller input. Surfaced to the caller, never retried.
- ExecutionError: an external call failed. Checkers convert it to a passing result.
- ValidationError: carries violations. The normal "needs repair" signal.
"""

from typing import Any, Optional


class ToolError(Exception):
    """Base error class for all recipeguard tool errors."""

    def __init__(self, tool_name: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.tool_name = tool_name
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.tool_name}] {self.message}"


class InvalidInputError(ToolError):
    """Raised when a tool cannot run because its input is malformed."""


class ExecutionError(ToolError):
    """Raised when an external call fails or returns an unusable response."""


class ValidationError(ToolError):
    """Raised when a caller asks for an exception on a non-compliant artifact."""

    def __init__(self, tool_name: str, message: str, violations: Optional[list] = None):
        violations = list(violations or [])
        super().__init__(tool_name, message, {"violations": violations})
        self.violations = violations
