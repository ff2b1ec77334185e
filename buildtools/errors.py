"""Exceptions raised by the build pipeline.

Every failure is fatal for the run: nothing here is retried or downgraded,
the first error raised by any stage propagates unchanged to the caller of
:func:`buildtools.pipeline.build`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from buildtools.tools.process import CommandResult


class BuildToolsError(Exception):
    """Base class for all pipeline errors."""


class ToolMissingError(BuildToolsError):
    """Raised when an external tool cannot be found or fails its version probe."""

    def __init__(self, tool: str, remediation: str) -> None:
        self.tool = tool
        self.remediation = remediation
        super().__init__(f"{tool} not found. {remediation}")


class InstantiationError(BuildToolsError):
    """Raised when a registered generator or plugin cannot be constructed."""

    def __init__(self, target: str, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot instantiate {target}: {reason}")


class CommandFailedError(BuildToolsError):
    """Raised when an external process exits with a nonzero code.

    Carries the full captured standard-error text so the caller can report
    exactly what the tool printed.
    """

    def __init__(self, result: CommandResult) -> None:
        self.result = result
        self.exit_code = result.exit_code
        self.stderr = result.stderr
        message = (
            f"Command '{result.display()}' failed with exit code {result.exit_code}."
        )
        if result.stderr.strip():
            message = f"{message} Error: {result.stderr.strip()}"
        super().__init__(message)


class ContentProductionError(BuildToolsError):
    """Raised when a generator or template producer raises."""

    def __init__(self, kind: str, name: str, cause: BaseException) -> None:
        self.kind = kind
        self.name = name
        self.cause = cause
        super().__init__(f"{kind} '{name}' failed to produce content: {cause}")


class ToolStateError(BuildToolsError):
    """Raised when the tool coordinator is driven out of order or after a failure."""
