"""Configuration: pydantic schema resolved once into a frozen Config.

Resolution order, lowest to highest precedence:
schema defaults, ``PIPELAUNCH_*`` environment variables, explicit overrides.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import re
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from pipelaunch.errors import InvalidInvocation

ENV_PREFIX = "PIPELAUNCH_"
DEFAULT_MAIN_SCRIPT = "main.nf"

_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)", re.IGNORECASE)
_DURATION_UNITS_MS = {
    "ms": 1,
    "s": 1_000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}


def parse_duration_ms(value: str | int) -> int:
    """Convert a duration to milliseconds.

    Plain integers are taken as milliseconds. Strings may chain
    ``<number><unit>`` groups, e.g. ``"5s"``, ``"1.5m"`` or ``"2h 30m"``.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a valid duration: {value!r}")
    if isinstance(value, int):
        return value
    text = value.strip()
    if not text:
        raise ValueError("Duration cannot be empty")
    if text.lstrip("-").isdigit():
        return int(text)

    total = 0.0
    pos = 0
    for match in _DURATION_RE.finditer(text):
        if text[pos : match.start()].strip():
            break
        total += float(match.group(1)) * _DURATION_UNITS_MS[match.group(2).lower()]
        pos = match.end()
    if pos == 0 or text[pos:].strip():
        raise ValueError(f"Not a valid duration: {value!r}")
    return int(total)


def _default_pool_size() -> int:
    return (os.cpu_count() or 1) + 1


class Settings(BaseModel):
    """Schema for launcher configuration fields, types and defaults."""

    home_dir: Path = Field(default_factory=lambda: Path.home() / ".pipelaunch")
    pool_size: int = Field(default_factory=_default_pool_size, ge=1)
    queue_size: int | None = Field(default=None, ge=1)
    poll_interval_ms: int = Field(default=1_000, ge=0)
    main_script: str = Field(default=DEFAULT_MAIN_SCRIPT, min_length=1)

    @field_validator("home_dir", mode="before")
    @classmethod
    def expand_home(cls, v: Any) -> Any:
        """Expand ``~`` in the home directory."""
        if isinstance(v, str | Path):
            return Path(v).expanduser()
        return v

    @field_validator("poll_interval_ms", mode="before")
    @classmethod
    def normalize_poll_interval(cls, v: Any) -> Any:
        """Accept duration strings as well as plain milliseconds."""
        if isinstance(v, str | int) and not isinstance(v, bool):
            return parse_duration_ms(v)
        return v

    @field_validator("main_script", mode="before")
    @classmethod
    def strip_main_script(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v


@dataclass(frozen=True)
class Config:
    """Immutable launcher configuration.

    Example:
        config = resolve_config(pool_size=4)
        pool = create_worker_pool(config)
    """

    home_dir: Path
    pool_size: int
    queue_size: int | None
    poll_interval_ms: int
    main_script: str

    @property
    def history_path(self) -> Path:
        """File recording previous run names."""
        return self.home_dir / "history"

    @property
    def assets_dir(self) -> Path:
        """Directory holding locally cached projects."""
        return self.home_dir / "assets"


def load_env() -> dict[str, Any]:
    """Read ``PIPELAUNCH_*`` variables for known settings fields.

    Values stay strings; the schema performs type coercion.
    """
    config: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            config[field_name] = value
    return config


def resolve_config(**overrides: Any) -> Config:
    """Resolve configuration from defaults, environment and overrides.

    Overrides with value ``None`` are ignored so CLI flags left unset do not
    mask environment values.

    Raises:
        InvalidInvocation: If any resolved value fails validation.
    """
    load_dotenv()
    merged = load_env()
    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        settings = Settings(**merged)
    except ValidationError as exc:
        first = exc.errors()[0]
        field_name = ".".join(str(p) for p in first.get("loc", ()))
        raise InvalidInvocation(
            f"Invalid configuration value for {field_name}: {first.get('msg')}",
            hint=f"Check the {ENV_PREFIX}{field_name.upper()} variable "
            "or the matching command line option.",
        ) from exc

    return Config(**settings.model_dump())
