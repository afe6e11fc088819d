"""Parameter binding: params file merged with inline command line overrides."""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
import re
from typing import TYPE_CHECKING, Any

import yaml

from pipelaunch.errors import InvalidInvocation, ParseError

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

ParamValue = bool | int | float | str | None

VALID_PARAMS_FILE = ("json", "yml", "yaml")

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?[dDfF]?"
)
_FLOAT_SPECIALS = {
    "NaN": math.nan,
    "Infinity": math.inf,
    "+Infinity": math.inf,
    "-Infinity": -math.inf,
}
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def parse_param(value: str | None) -> ParamValue:
    """Coerce a command line string to the most specific parameter type.

    First match wins: ``None``, ``true``/``false`` (any case), a 64-bit
    integer, a float, otherwise the string unchanged. Numbers may be
    surrounded by whitespace and floats may end in a ``d``/``f`` type suffix.

    Example:
        parse_param("42")     # 42
        parse_param("FALSE")  # False
        parse_param("1e3")    # 1000.0
        parse_param("1.5d")   # 1.5
    """
    if value is None:
        return None

    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    text = value.strip()
    if _INT_RE.fullmatch(text):
        number = int(text)
        if _INT64_MIN <= number <= _INT64_MAX:
            return number

    if _FLOAT_RE.fullmatch(text):
        return float(text.rstrip("dDfF"))
    if text in _FLOAT_SPECIALS:
        return _FLOAT_SPECIALS[text]

    return value


def validate_params_file(file: str | Path) -> Path:
    """Check that *file* exists and has a supported extension.

    Raises:
        InvalidInvocation: The file is missing or has another extension.
    """
    path = Path(file)
    if not path.exists():
        raise InvalidInvocation(f"Specified params file does not exist: {file}")

    ext = path.suffix[1:].lower()
    if ext not in VALID_PARAMS_FILE:
        raise InvalidInvocation(
            f"Not a valid params file extension: {file}",
            hint=f"It must be one of the following: {','.join(VALID_PARAMS_FILE)}",
        )
    return path


def _load_mapping(path: Path) -> dict[str, Any]:
    ext = path.suffix[1:].lower()
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f) if ext == "json" else yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError) as exc:
        raise ParseError(f"Cannot parse params file: {path}", path=path) from exc

    if not isinstance(data, dict):
        raise ParseError(
            f"Cannot parse params file: {path}",
            path=path,
            hint=f"Expected a mapping at the top level, got {type(data).__name__}.",
        )
    return {str(k): v for k, v in data.items()}


def load_params_file(file: str | Path) -> dict[str, Any]:
    """Validate and read a JSON or YAML params file into a dict.

    Values keep the types given by the file; nested objects and lists are
    returned as they are.

    Raises:
        InvalidInvocation: See ``validate_params_file``.
        ParseError: The content is not a single JSON object or YAML mapping.
    """
    path = validate_params_file(file)
    logger.debug("Loading params file %s", path)
    return _load_mapping(path)


def bind_params(
    params_file: str | Path | None = None,
    inline: Mapping[str, str | None] | None = None,
) -> dict[str, Any]:
    """Merge a params file with inline overrides.

    Inline values are coerced with ``parse_param`` and always win over
    file values of the same name.
    """
    result: dict[str, Any] = {}
    if params_file:
        result.update(load_params_file(params_file))

    for key, value in (inline or {}).items():
        result[key] = parse_param(value)
    return result
