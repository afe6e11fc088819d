"""Command line entry point: ``pipelaunch run``.

Examples:
- pipelaunch run main.nf --reads 'data/*.fq' --threads 4
- pipelaunch run org/project -r v1.2 --params-file params.yml
- cat main.nf | pipelaunch run -
"""

from __future__ import annotations

import argparse
import json
import logging
import re
import shlex
import sys
from typing import TYPE_CHECKING, Any
import uuid

from pipelaunch.config import resolve_config
from pipelaunch.errors import InvalidInvocation, PipelaunchError
from pipelaunch.history import HistoryFile
from pipelaunch.launch import prepare_launch
from pipelaunch.options import (
    FlagOrLabel,
    LaunchOptions,
    label_of,
    parse_flag_or_label,
)
from pipelaunch.projects.local import LocalProjectRepository
from pipelaunch.reference import LocalScript, RemoteProject

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pipelaunch.launch import Launch

logger = logging.getLogger(__name__)

_NEGATIVE_NUMBER_RE = re.compile(r"-\d+(?:\.\d*)?(?:[eE][+-]?\d+)?")
_FLAG_OR_LABEL = {"nargs": "?", "const": "", "default": None}


class _TrackingParser(argparse.ArgumentParser):
    """ArgumentParser that remembers every option string it declares."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.known_options: set[str] = set()
        super().__init__(*args, **kwargs)

    def add_argument(self, *name_or_flags: str, **kwargs: Any) -> argparse.Action:
        self.known_options.update(f for f in name_or_flags if f.startswith("-"))
        return super().add_argument(*name_or_flags, **kwargs)


def _build_parser() -> tuple[_TrackingParser, _TrackingParser]:
    parser = _TrackingParser(
        prog="pipelaunch",
        description="Resolve and prepare pipeline runs.",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only log warnings"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output"
    )
    sub = parser.add_subparsers(
        dest="command", required=True, parser_class=_TrackingParser
    )

    run = sub.add_parser(
        "run",
        help="Execute a pipeline project",
        description="Execute a pipeline project. Unknown --<name>=<value> "
        "options set pipeline parameters.",
    )
    run.add_argument("pipeline", nargs="?", help="Project name, script path or `-`")
    run.add_argument("script_args", nargs="*", help="Arguments passed to the script")
    run.add_argument("--name", dest="run_name", help="Mnemonic name for this run")
    run.add_argument(
        "--resume",
        **_FLAG_OR_LABEL,
        metavar="SESSION_ID",
        help="Continue a previous run, optionally a given session",
    )
    run.add_argument(
        "-r", "--revision", help="Project revision (git branch, tag or commit)"
    )
    run.add_argument(
        "--latest", action="store_true", help="Pull latest changes before run"
    )
    run.add_argument("--stdin", action="store_true", help=argparse.SUPPRESS)
    run.add_argument("--params-file", help="Load parameters from a JSON/YAML file")
    run.add_argument("-w", "--work-dir", help="Directory for intermediate files")
    run.add_argument("--profile", help="Configuration profile")
    run.add_argument(
        "--with-docker", **_FLAG_OR_LABEL, metavar="IMAGE", help="Run in Docker"
    )
    run.add_argument(
        "--without-docker", action="store_true", help="Disable Docker execution"
    )
    run.add_argument(
        "--with-singularity",
        **_FLAG_OR_LABEL,
        metavar="IMAGE",
        help="Run in a Singularity container",
    )
    run.add_argument(
        "-K",
        "--with-k8s",
        **_FLAG_OR_LABEL,
        metavar="ID",
        help="Run in a Kubernetes cluster",
    )
    run.add_argument(
        "--ps", "--pool-size", dest="pool_size", type=int, help=argparse.SUPPRESS
    )
    run.add_argument(
        "--pi", "--poll-interval", dest="poll_interval", help=argparse.SUPPRESS
    )
    run.add_argument(
        "--qs",
        "--queue-size",
        dest="queue_size",
        type=int,
        help="Max number of tasks run in parallel by each executor",
    )
    return parser, run


def _is_value(token: str) -> bool:
    return not token.startswith("-") or bool(_NEGATIVE_NUMBER_RE.fullmatch(token))


def split_params(
    argv: Sequence[str], known_options: set[str]
) -> tuple[list[str], dict[str, str | None]]:
    """Separate inline ``--<name>[=<value>]`` parameters from regular arguments.

    ``--name value`` and ``--name=value`` both set a value; a bare
    ``--name`` followed by another option (or nothing) sets ``"true"``.
    Later occurrences overwrite earlier ones.
    """
    rest: list[str] = []
    params: dict[str, str | None] = {}
    tokens = list(argv)
    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1
        if token == "--":
            rest.extend(tokens[i - 1 :])
            break
        if not token.startswith("--") or token.split("=", 1)[0] in known_options:
            rest.append(token)
            continue

        key, sep, value = token[2:].partition("=")
        if not key:
            raise InvalidInvocation(f"Invalid parameter option: {token}")
        if sep:
            params[key] = value
        elif i < len(tokens) and _is_value(tokens[i]):
            params[key] = tokens[i]
            i += 1
        else:
            params[key] = "true"
    return rest, params


def _configure_logging(*, quiet: bool, verbose: bool) -> None:
    level = logging.WARNING if quiet else logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _revision_id(launch: Launch) -> str:
    ref = launch.reference
    if isinstance(ref, LocalScript):
        return ref.short_id
    if isinstance(ref, RemoteProject):
        return (ref.revision_info.commit_id or "-")[:10]
    return "-"


def _summary(launch: Launch, session_id: str) -> dict[str, Any]:
    options = launch.options
    return {
        "run_name": launch.run_name,
        "session_id": session_id,
        "kind": type(launch.reference).__name__,
        "script": str(launch.script_path),
        "revision": _revision_id(launch),
        "params": launch.params,
        "script_args": list(launch.script_args),
        "profile": options.profile if options else None,
        "work_dir": options.work_dir if options else None,
        "resumed": bool(options and options.resume),
        "containers": launch.container_settings(),
        "executor": launch.executor_settings(),
    }


def _flag_or_label(raw: str | None) -> FlagOrLabel | None:
    return None if raw is None else parse_flag_or_label(raw)


def run_command(
    args: argparse.Namespace, params: dict[str, str | None], raw: Sequence[str]
) -> int:
    """Prepare the launch, record it in the history and print its summary."""
    config = resolve_config(
        pool_size=args.pool_size,
        queue_size=args.queue_size,
        poll_interval_ms=args.poll_interval,
    )
    options = LaunchOptions(
        pipeline=args.pipeline,
        script_args=tuple(args.script_args),
        run_name=args.run_name,
        revision=args.revision,
        latest=args.latest,
        stdin=args.stdin,
        params_file=args.params_file,
        params=params,
        resume=_flag_or_label(args.resume),
        with_docker=_flag_or_label(args.with_docker),
        without_docker=args.without_docker,
        with_singularity=_flag_or_label(args.with_singularity),
        with_k8s=_flag_or_label(args.with_k8s),
        profile=args.profile,
        work_dir=args.work_dir,
    )

    history = HistoryFile(config.history_path)
    repository = LocalProjectRepository(
        config.assets_dir, main_script=config.main_script
    )
    stdin = sys.stdin if options.pipeline == "-" else None
    launch = prepare_launch(
        options,
        repository=repository,
        history=history,
        stdin=stdin,
        config=config,
    )

    session_id = label_of(options.resume) or str(uuid.uuid4())
    history.write(
        launch.run_name,
        session_id,
        shlex.join(["pipelaunch", *raw]),
        revision_id=_revision_id(launch),
    )
    print(json.dumps(_summary(launch, session_id), indent=2, default=str))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    raw = list(argv) if argv is not None else sys.argv[1:]
    parser, run_parser = _build_parser()

    try:
        rest, params = split_params(
            raw, parser.known_options | run_parser.known_options
        )
        args = parser.parse_args(rest)
        _configure_logging(quiet=args.quiet, verbose=args.verbose)
        return run_command(args, params, raw)
    except InvalidInvocation as exc:
        _print_error(exc)
        return 2
    except PipelaunchError as exc:
        _print_error(exc)
        logger.debug("Launch failed", exc_info=exc)
        return 1


def _print_error(exc: PipelaunchError) -> None:
    print(f"error: {exc}", file=sys.stderr)
    if exc.hint:
        print(f"hint: {exc.hint}", file=sys.stderr)
    if exc.__cause__ is not None:
        print(f"cause: {exc.__cause__}", file=sys.stderr)


if __name__ == "__main__":  # pragma: no cover - direct execution guard
    raise SystemExit(main())
