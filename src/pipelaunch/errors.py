"""Exception hierarchy for pipelaunch."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class PipelaunchError(Exception):
    """Base exception for all pipelaunch errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class InvalidInvocation(PipelaunchError):
    """The run invocation is self-contradictory or refers to something absent."""


class RepositoryError(PipelaunchError):
    """A project repository failed in an unexpected way.

    The original exception is available as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        repo_id: str,
        local_path: Path | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.repo_id = repo_id
        self.local_path = local_path


class ParseError(PipelaunchError):
    """A parameters file could not be parsed as declared by its extension."""

    def __init__(self, message: str, *, path: Path, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)
        self.path = path
