"""Project repository implementations."""

from .base import Project, ProjectRepository, RevisionInfo, ScriptFile
from .local import LocalProjectRepository

__all__ = [
    "LocalProjectRepository",
    "Project",
    "ProjectRepository",
    "RevisionInfo",
    "ScriptFile",
]
