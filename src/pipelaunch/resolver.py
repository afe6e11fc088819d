"""Pipeline resolution: turn a user-given pipeline name into a script reference.

Resolution order, first match wins:
1. ``-`` reads the script from standard input.
2. An existing path is a local script, or a directory project whose main
   script is discovered through the project repository.
3. Anything else names a project in the repository, pulled when needed and
   checked out at the requested revision.
"""

from __future__ import annotations

import atexit
from contextlib import suppress
import logging
import os
from pathlib import Path
import shutil
import tempfile
from typing import TYPE_CHECKING

from pipelaunch.errors import InvalidInvocation, PipelaunchError, RepositoryError
from pipelaunch.reference import (
    LocalScript,
    PipelineReference,
    RemoteProject,
    StdinScript,
    content_id,
)

if TYPE_CHECKING:
    from typing import TextIO

    from pipelaunch.projects.base import ProjectRepository

logger = logging.getLogger(__name__)

STDIN_NAME = "-"


def _unlink_quietly(path: Path) -> None:
    with suppress(FileNotFoundError):
        path.unlink()


def read_script_from_stream(stream: TextIO, *, prefix: str = "pipelaunch") -> Path:
    """Copy *stream* into a temporary file removed at interpreter exit.

    Text streams backed by a binary buffer are copied byte for byte, so the
    script is stored whatever its encoding.

    Raises:
        InvalidInvocation: Reading the stream failed; no file is left behind.
    """
    fd, name = tempfile.mkstemp(prefix=prefix, suffix=".nf")
    path = Path(name)
    atexit.register(_unlink_quietly, path)
    try:
        with os.fdopen(fd, "wb") as f:
            buffer = getattr(stream, "buffer", None)
            if buffer is not None:
                shutil.copyfileobj(buffer, f)
            else:
                for chunk in iter(lambda: stream.read(64 * 1024), ""):
                    f.write(chunk.encode("utf-8", errors="replace"))
    except (OSError, UnicodeError) as exc:
        _unlink_quietly(path)
        raise InvalidInvocation("Cannot access `stdin` stream") from exc
    logger.debug("Stdin script saved to %s", path)
    return path


def _try_read_stdin(stream: TextIO | None) -> Path | None:
    """Materialize *stream* unless it is missing, interactive or empty."""
    if stream is None:
        return None
    isatty = getattr(stream, "isatty", None)
    if callable(isatty) and isatty():
        return None
    path = read_script_from_stream(stream)
    if path.stat().st_size == 0:
        _unlink_quietly(path)
        return None
    return path


class PipelineResolver:
    """Resolve pipeline names against the filesystem and a project repository."""

    def __init__(self, repository: ProjectRepository) -> None:
        self.repository = repository

    def resolve(
        self,
        pipeline_name: str,
        *,
        revision: str | None = None,
        latest: bool = False,
        stdin: TextIO | None = None,
        run_name: str | None = None,
    ) -> PipelineReference:
        """Resolve *pipeline_name* to exactly one pipeline reference.

        Args:
            pipeline_name: ``-``, a local file or directory, or a project name.
            revision: Branch, tag or commit; only valid for repository projects.
            latest: Pull the project even when it is already runnable.
            stdin: Stream to read the script from when *pipeline_name* is ``-``.
            run_name: Used in log messages only.

        Raises:
            InvalidInvocation: Missing stdin or a revision given for a local script.
            RepositoryError: The repository failed in an unexpected way.
        """
        if not pipeline_name:
            raise InvalidInvocation("No project name was specified")

        if pipeline_name == STDIN_NAME:
            return self._resolve_stdin(stdin, revision)

        script = Path(pipeline_name)
        if script.is_dir():
            script = self.repository.set_local_path(script)

        if script.exists():
            return self._resolve_local(script, revision, run_name)

        return self._resolve_project(pipeline_name, revision, latest, run_name)

    def _resolve_stdin(self, stdin: TextIO | None, revision: str | None) -> StdinScript:
        path = _try_read_stdin(stdin)
        if path is None:
            raise InvalidInvocation(
                "Cannot access `stdin` stream",
                hint="Pipe the script into the command when using `-` as pipeline name.",
            )
        if revision:
            raise InvalidInvocation(
                "Revision option cannot be used running a script from stdin"
            )
        return StdinScript(temp_path=path)

    def _resolve_local(
        self, script: Path, revision: str | None, run_name: str | None
    ) -> LocalScript:
        if revision:
            raise InvalidInvocation(
                f"Revision option cannot be used running a local script: {script}"
            )
        result = LocalScript(path=script, content_id=content_id(script))
        logger.info(
            "Launching `%s` [%s] - revision: %s", script, run_name, result.short_id
        )
        return result

    def _resolve_project(
        self,
        name: str,
        revision: str | None,
        latest: bool,
        run_name: str | None,
    ) -> RemoteProject:
        repo = self.repository
        project = None
        try:
            project = repo.get_project(name)

            check_for_update = True
            if not repo.is_runnable(project) or latest:
                logger.info("Pulling %s ...", project.name)
                summary = repo.download(project)
                if summary:
                    logger.info(" %s", summary)
                check_for_update = False

            repo.checkout(project, revision)
            repo.update_modules(project)
            script_file = repo.get_script_file(project)
            logger.info(
                "Launching `%s` [%s] - revision: %s",
                project.name,
                run_name,
                script_file.revision_info,
            )
            if check_for_update:
                repo.check_remote_status(project, script_file.revision_info)
        except PipelaunchError:
            raise
        except Exception as exc:
            local_path = project.local_path if project is not None else None
            raise RepositoryError(
                f"Unknown error accessing project `{name}` -- "
                f"Repository may be corrupted: {local_path}",
                repo_id=name,
                local_path=local_path,
            ) from exc

        return RemoteProject(
            repo_id=project.name,
            revision=revision or None,
            script_path=script_file.path,
            revision_info=script_file.revision_info,
        )


def resolve_pipeline(
    pipeline_name: str,
    repository: ProjectRepository,
    *,
    revision: str | None = None,
    latest: bool = False,
    stdin: TextIO | None = None,
    run_name: str | None = None,
) -> PipelineReference:
    """Resolve *pipeline_name* with a one-off resolver. See ``PipelineResolver.resolve``."""
    return PipelineResolver(repository).resolve(
        pipeline_name,
        revision=revision,
        latest=latest,
        stdin=stdin,
        run_name=run_name,
    )
