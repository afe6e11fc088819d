"""Pipeline references: the three kinds of script a run can launch."""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from pipelaunch.projects.base import RevisionInfo


def content_id(path: Path) -> str:
    """Compute the SHA256 hex digest of a script's content."""
    return hashlib.sha256(path.read_bytes()).hexdigest()


@dataclass(frozen=True, slots=True)
class StdinScript:
    """Script read from standard input into a temporary file."""

    temp_path: Path

    @property
    def script_path(self) -> Path:
        return self.temp_path


@dataclass(frozen=True, slots=True)
class LocalScript:
    """Script file on the local filesystem, outside revision control."""

    path: Path
    #: Content digest, used to tell apart edits of the same file across runs.
    content_id: str

    @property
    def script_path(self) -> Path:
        return self.path

    @property
    def short_id(self) -> str:
        return self.content_id[:10]


@dataclass(frozen=True, slots=True)
class RemoteProject:
    """Main script of a cached project checked out at a revision."""

    repo_id: str
    #: The requested revision; ``None`` selects the project's default.
    revision: str | None
    script_path: Path
    revision_info: RevisionInfo


PipelineReference = StdinScript | LocalScript | RemoteProject
