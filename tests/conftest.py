"""Pytest configuration and fixtures.

Provides environment isolation and collaborator test doubles. Fixtures
marked autouse apply to every test.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any

import pytest

from pipelaunch.projects.base import Project, RevisionInfo, ScriptFile

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class FakeProjectRepository:
    """ProjectRepository double that records every call in order.

    Set ``fail_on`` to a method name and ``error`` to the exception it raises.
    """

    root: Path
    runnable: bool = True
    summary: str | None = "Downloaded"
    revision_info: RevisionInfo = field(
        default_factory=lambda: RevisionInfo(commit_id="0123456789abcdef", name="main")
    )
    fail_on: str | None = None
    error: BaseException | None = None
    calls: list[tuple[str, Any]] = field(default_factory=list)

    def _record(self, name: str, arg: Any = None) -> None:
        self.calls.append((name, arg))
        if name == self.fail_on and self.error is not None:
            raise self.error

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def get_project(self, name: str) -> Project:
        self._record("get_project", name)
        return Project(name=name, local_path=self.root / name)

    def is_runnable(self, project: Project) -> bool:
        self._record("is_runnable", project.name)
        return self.runnable

    def download(self, project: Project) -> str | None:
        self._record("download", project.name)
        return self.summary

    def checkout(self, project: Project, revision: str | None) -> None:
        self._record("checkout", revision)

    def update_modules(self, project: Project) -> None:
        self._record("update_modules", project.name)

    def get_script_file(self, project: Project) -> ScriptFile:
        self._record("get_script_file", project.name)
        return ScriptFile(
            path=project.local_path / "main.nf", revision_info=self.revision_info
        )

    def check_remote_status(
        self, project: Project, revision_info: RevisionInfo
    ) -> None:
        self._record("check_remote_status", revision_info)

    def set_local_path(self, dir_path: Path) -> Path:
        self._record("set_local_path", dir_path)
        return Path(dir_path) / "main.nf"


@dataclass
class FakeHistory:
    """RunHistory double backed by a set of names."""

    names: set[str] = field(default_factory=set)
    generated: list[str] = field(default_factory=list)
    lookups: list[str] = field(default_factory=list)

    def check_exists_by_name(self, name: str) -> bool:
        self.lookups.append(name)
        return name in self.names

    def generate_next_name(self) -> str:
        name = f"fresh_run_{len(self.generated)}"
        while name in self.names:
            name += "_x"
        self.generated.append(name)
        return name


@pytest.fixture
def repository(tmp_path: Path) -> FakeProjectRepository:
    return FakeProjectRepository(root=tmp_path / "assets")


@pytest.fixture
def history() -> FakeHistory:
    return FakeHistory()


@pytest.fixture
def script(tmp_path: Path) -> Path:
    """A local pipeline script."""
    path = tmp_path / "hello.nf"
    path.write_text("println 'hello'\n", encoding="utf-8")
    return path


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    monkeypatch.setattr(
        "pipelaunch.config.load_dotenv", lambda *_args, **_kwargs: False
    )


@pytest.fixture(autouse=True)
def isolate_env(request, monkeypatch, tmp_path):
    """Clear PIPELAUNCH_* variables and point the home dir at a temp directory.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("PIPELAUNCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PIPELAUNCH_HOME_DIR", str(tmp_path / "home"))
