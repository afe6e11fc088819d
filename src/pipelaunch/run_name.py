"""Run name allocation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pipelaunch.errors import InvalidInvocation

if TYPE_CHECKING:
    from pipelaunch.history import RunHistory

logger = logging.getLogger(__name__)

#: Refers to the most recent run in other commands, so never a valid run name.
RESERVED_NAME = "last"


class RunNameAllocator:
    """Validate a requested run name or generate a fresh one.

    The history is only read; recording the run happens downstream.
    Concurrent processes sharing a history are not guarded against.
    """

    def __init__(self, history: RunHistory) -> None:
        self.history = history

    def allocate(self, requested: str | None = None) -> str:
        """Return the run name for this invocation.

        Raises:
            InvalidInvocation: *requested* is reserved or already used.
        """
        if requested == RESERVED_NAME:
            raise InvalidInvocation(f"Not a valid run name: `{RESERVED_NAME}`")

        if not requested:
            name = self.history.generate_next_name()
            logger.debug("Generated run name %s", name)
            return name

        if self.history.check_exists_by_name(requested):
            raise InvalidInvocation(
                f"Run name `{requested}` has been already used",
                hint="Specify a different one.",
            )
        return requested


def allocate_run_name(history: RunHistory, requested: str | None = None) -> str:
    return RunNameAllocator(history).allocate(requested)
