from __future__ import annotations

import threading

import pytest

import pipelaunch
from pipelaunch.config import resolve_config
from pipelaunch.pool import create_worker_pool

pytestmark = pytest.mark.unit


def test_pool_is_sized_from_config() -> None:
    cfg = resolve_config(pool_size=2)

    with create_worker_pool(cfg, thread_name_prefix="test-pool") as pool:
        names = set(pool.map(lambda _: threading.current_thread().name, range(8)))

    assert names
    assert len(names) <= 2
    assert all(n.startswith("test-pool") for n in names)


def test_import_creates_no_threads() -> None:
    assert not any(t.name.startswith("pipelaunch") for t in threading.enumerate())
    assert pipelaunch.__version__
