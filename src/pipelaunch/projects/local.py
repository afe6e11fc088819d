"""Local project repository: directories on disk without revision control."""

from __future__ import annotations

import logging
from pathlib import Path
import tomllib
from typing import Any

from pipelaunch.config import DEFAULT_MAIN_SCRIPT
from pipelaunch.errors import InvalidInvocation
from pipelaunch.projects.base import Project, RevisionInfo, ScriptFile

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.toml"


def _read_manifest(project_dir: Path) -> dict[str, Any]:
    """Return the ``[manifest]`` table of a project, or an empty dict."""
    path = project_dir / MANIFEST_FILE
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise InvalidInvocation(f"Cannot parse project manifest: {path}") from exc
    manifest = data.get("manifest", {})
    return manifest if isinstance(manifest, dict) else {}


class LocalProjectRepository:
    """Serve projects that already live on the local filesystem.

    Two kinds of project are handled: arbitrary directories passed to
    ``set_local_path`` and projects cached under ``assets_dir/<org>/<name>``.
    Neither is under revision control here, so pulling and checking out a
    specific revision are refused.
    """

    def __init__(
        self, assets_dir: Path, *, main_script: str = DEFAULT_MAIN_SCRIPT
    ) -> None:
        self.assets_dir = Path(assets_dir)
        self.main_script = main_script

    def main_script_of(self, project_dir: Path) -> Path:
        """Main script declared by *project_dir*'s manifest, or the default."""
        name = _read_manifest(project_dir).get("main_script") or self.main_script
        return project_dir / str(name)

    def set_local_path(self, dir_path: Path) -> Path:
        return self.main_script_of(Path(dir_path))

    def get_project(self, name: str) -> Project:
        local_path = self.assets_dir / name.strip("/")
        if not local_path.resolve().is_relative_to(self.assets_dir.resolve()):
            raise InvalidInvocation(
                f"Invalid project name `{name}`",
                hint="Project names cannot point outside the assets directory.",
            )
        if not local_path.is_dir():
            raise InvalidInvocation(
                f"Cannot find project `{name}`",
                hint=f"Projects must be available under {self.assets_dir}",
            )
        return Project(name=name, local_path=local_path)

    def is_runnable(self, project: Project) -> bool:
        return self.main_script_of(project.local_path).is_file()

    def download(self, project: Project) -> str | None:
        raise InvalidInvocation(
            f"Cannot pull project `{project.name}` -- "
            "remote download is not supported by the local repository",
            hint="Place the project under the assets directory or drop --latest.",
        )

    def checkout(self, project: Project, revision: str | None) -> None:
        if revision:
            raise InvalidInvocation(
                f"Cannot checkout revision `{revision}` of project "
                f"`{project.name}` -- the local repository has no revision control"
            )

    def update_modules(self, project: Project) -> None:
        logger.debug("No modules to update for %s", project.name)

    def get_script_file(self, project: Project) -> ScriptFile:
        return ScriptFile(
            path=self.main_script_of(project.local_path),
            revision_info=RevisionInfo(name="local"),
        )

    def check_remote_status(
        self, project: Project, revision_info: RevisionInfo
    ) -> None:
        logger.debug(
            "Skipping remote status check for %s (%s)", project.name, revision_info
        )
