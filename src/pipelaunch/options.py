"""Launch options as given on the command line."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pipelaunch.errors import InvalidInvocation


@dataclass(frozen=True, slots=True)
class Flag:
    """Option given as a bare switch."""

    kind: Literal["flag"] = "flag"

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Label:
    """Option given with a value, e.g. a container image or session id."""

    text: str
    kind: Literal["label"] = "label"


FlagOrLabel = Flag | Label


def parse_flag_or_label(raw: str | None) -> FlagOrLabel:
    """Map a missing or empty option value to ``Flag``, anything else to ``Label``."""
    if raw is None or raw == "":
        return Flag()
    return Label(raw)


def label_of(value: FlagOrLabel | None) -> str | None:
    """Text carried by *value*, or *None* for a bare flag or unset option."""
    return value.text if isinstance(value, Label) else None


@dataclass(frozen=True)
class LaunchOptions:
    """Inputs of a single ``run`` invocation."""

    #: Project name, local path, or ``-`` for stdin.
    pipeline: str | None = None
    script_args: tuple[str, ...] = ()
    run_name: str | None = None
    revision: str | None = None
    #: Pull the project before running even when it is already available.
    latest: bool = False
    #: Read the script from stdin; implies ``pipeline="-"``.
    stdin: bool = False
    params_file: str | None = None
    #: Inline parameters in declaration order; values are coerced at binding.
    params: dict[str, str | None] = field(default_factory=dict)
    resume: FlagOrLabel | None = None
    with_docker: FlagOrLabel | None = None
    without_docker: bool = False
    with_singularity: FlagOrLabel | None = None
    with_k8s: FlagOrLabel | None = None
    profile: str | None = None
    work_dir: str | None = None

    def __post_init__(self) -> None:
        """Validate option combinations early for clear errors."""
        if self.stdin:
            object.__setattr__(self, "pipeline", "-")

        if not self.pipeline:
            raise InvalidInvocation(
                "No project name was specified",
                hint="Pass a project name, a script path, or `-` to read from stdin.",
            )

        if self.with_docker and self.without_docker:
            raise InvalidInvocation(
                "Command line options `--with-docker` and `--without-docker` "
                "cannot be specified at the same time"
            )

        object.__setattr__(self, "script_args", tuple(self.script_args))
