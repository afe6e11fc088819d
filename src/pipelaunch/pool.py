"""Worker pool construction for the execution engine.

Pools are built on request from an explicit Config; nothing is installed
process-wide when this module is imported.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pipelaunch.config import Config

logger = logging.getLogger(__name__)


def create_worker_pool(
    config: Config, *, thread_name_prefix: str = "pipelaunch"
) -> ThreadPoolExecutor:
    """Create a thread pool sized by ``config.pool_size``.

    The caller owns the pool and must shut it down.
    """
    logger.debug("Creating worker pool with %d threads", config.pool_size)
    return ThreadPoolExecutor(
        max_workers=config.pool_size, thread_name_prefix=thread_name_prefix
    )
