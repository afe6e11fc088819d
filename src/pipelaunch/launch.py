"""Launch preparation: run name, pipeline reference and parameters together."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any

from pipelaunch.config import resolve_config
from pipelaunch.options import Label
from pipelaunch.params import bind_params
from pipelaunch.pool import create_worker_pool
from pipelaunch.resolver import PipelineResolver
from pipelaunch.run_name import RunNameAllocator

if TYPE_CHECKING:
    from concurrent.futures import ThreadPoolExecutor
    from pathlib import Path
    from typing import TextIO

    from pipelaunch.config import Config
    from pipelaunch.history import RunHistory
    from pipelaunch.options import FlagOrLabel, LaunchOptions
    from pipelaunch.projects.base import ProjectRepository
    from pipelaunch.reference import PipelineReference

logger = logging.getLogger(__name__)


def _option_value(value: FlagOrLabel | None) -> str | bool:
    """Label text, ``True`` for a bare flag, ``False`` when unset."""
    if isinstance(value, Label):
        return value.text
    return value is not None


@dataclass(frozen=True)
class Launch:
    """Everything the execution engine needs to start a run."""

    reference: PipelineReference
    run_name: str
    params: dict[str, Any]
    script_args: tuple[str, ...] = ()
    options: LaunchOptions | None = None
    config: Config | None = None

    @property
    def script_path(self) -> Path:
        return self.reference.script_path

    @property
    def base_dir(self) -> Path:
        """Directory of the resolved script."""
        return self.script_path.parent

    def executor_settings(self) -> dict[str, int | None]:
        """Pool, queue and polling limits for the execution engine."""
        config = self.config or resolve_config()
        return {
            "pool_size": config.pool_size,
            "queue_size": config.queue_size,
            "poll_interval_ms": config.poll_interval_ms,
        }

    def container_settings(self) -> dict[str, str | bool]:
        """Requested container runtimes; a string names an image or cluster id."""
        opts = self.options
        if opts is None:
            return {"docker": False, "singularity": False, "k8s": False}
        return {
            "docker": (
                False if opts.without_docker else _option_value(opts.with_docker)
            ),
            "singularity": _option_value(opts.with_singularity),
            "k8s": _option_value(opts.with_k8s),
        }

    def worker_pool(self) -> ThreadPoolExecutor:
        """Build the engine's worker pool from this launch's configuration.

        The caller owns the pool and must shut it down.
        """
        return create_worker_pool(self.config or resolve_config())


def prepare_launch(
    options: LaunchOptions,
    *,
    repository: ProjectRepository,
    history: RunHistory,
    stdin: TextIO | None = None,
    config: Config | None = None,
) -> Launch:
    """Allocate the run name, resolve the pipeline and bind its parameters.

    *config* travels with the launch to size the engine's worker pool;
    it is resolved from the environment when omitted.

    Raises:
        InvalidInvocation: Contradictory or missing inputs.
        RepositoryError: The project repository failed unexpectedly.
        ParseError: The params file content is malformed.
    """
    run_name = RunNameAllocator(history).allocate(options.run_name)
    reference = PipelineResolver(repository).resolve(
        options.pipeline or "",
        revision=options.revision,
        latest=options.latest,
        stdin=stdin,
        run_name=run_name,
    )
    params = bind_params(options.params_file, options.params)
    logger.debug("Bound %d params for run %s", len(params), run_name)

    return Launch(
        reference=reference,
        run_name=run_name,
        params=params,
        script_args=options.script_args,
        options=options,
        config=config,
    )
