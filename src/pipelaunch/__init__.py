"""pipelaunch: decide what a pipeline run executes, under which name, with which params.

Public API:
    - prepare_launch(): Allocate run name, resolve pipeline, bind params
    - resolve_pipeline(): Turn a pipeline name into a PipelineReference
    - allocate_run_name(): Validate or generate a unique run name
    - bind_params(): Merge a params file with inline overrides
"""

from __future__ import annotations

import logging

from pipelaunch.config import Config, resolve_config
from pipelaunch.errors import (
    InvalidInvocation,
    ParseError,
    PipelaunchError,
    RepositoryError,
)
from pipelaunch.history import HistoryFile, RunHistory
from pipelaunch.launch import Launch, prepare_launch
from pipelaunch.options import Flag, Label, LaunchOptions
from pipelaunch.params import bind_params, parse_param
from pipelaunch.projects import LocalProjectRepository, ProjectRepository
from pipelaunch.reference import (
    LocalScript,
    PipelineReference,
    RemoteProject,
    StdinScript,
)
from pipelaunch.resolver import PipelineResolver, resolve_pipeline
from pipelaunch.run_name import RunNameAllocator, allocate_run_name

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("pipelaunch")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("pipelaunch").addHandler(logging.NullHandler())

__all__ = [
    "Config",
    "Flag",
    "HistoryFile",
    "InvalidInvocation",
    "Label",
    "Launch",
    "LaunchOptions",
    "LocalProjectRepository",
    "LocalScript",
    "ParseError",
    "PipelaunchError",
    "PipelineReference",
    "PipelineResolver",
    "ProjectRepository",
    "RemoteProject",
    "RepositoryError",
    "RunHistory",
    "RunNameAllocator",
    "StdinScript",
    "allocate_run_name",
    "bind_params",
    "parse_param",
    "prepare_launch",
    "resolve_config",
    "resolve_pipeline",
]
