"""Allow ``python -m pipelaunch``."""

from pipelaunch.cli import main

if __name__ == "__main__":  # pragma: no cover - direct execution guard
    raise SystemExit(main())
