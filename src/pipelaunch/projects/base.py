"""Project repository protocol: the capability set the resolver relies on."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Project:
    """Handle on a project known to a repository."""

    name: str
    local_path: Path


@dataclass(frozen=True)
class RevisionInfo:
    """Revision a project is checked out at."""

    commit_id: str | None = None
    name: str | None = None
    #: ``"branch"``, ``"tag"`` or ``"commit"`` when known.
    type: str | None = None

    def __str__(self) -> str:
        commit = self.commit_id[:10] if self.commit_id else "-"
        return f"{commit} [{self.name}]" if self.name else commit


@dataclass(frozen=True)
class ScriptFile:
    """Main script of a project together with its revision."""

    path: Path
    revision_info: RevisionInfo


@runtime_checkable
class ProjectRepository(Protocol):
    """Store of versioned projects that can be pulled and checked out."""

    def get_project(self, name: str) -> Project:
        """Return a (possibly cached) handle for the named project."""
        ...

    def is_runnable(self, project: Project) -> bool:
        """Whether the project is available locally and can be launched."""
        ...

    def download(self, project: Project) -> str | None:
        """Pull the project, returning a short summary when there is one."""
        ...

    def checkout(self, project: Project, revision: str | None) -> None:
        """Check out *revision*, or the default revision when *None*."""
        ...

    def update_modules(self, project: Project) -> None:
        """Recursively update nested module references."""
        ...

    def get_script_file(self, project: Project) -> ScriptFile:
        """Return the main script and the revision it was resolved at."""
        ...

    def check_remote_status(
        self, project: Project, revision_info: RevisionInfo
    ) -> None:
        """Report whether the remote has moved past *revision_info*."""
        ...

    def set_local_path(self, dir_path: Path) -> Path:
        """Treat *dir_path* as a checked-out project and return its main script."""
        ...
