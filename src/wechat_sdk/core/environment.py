"""
Where ``WECHAT_*`` settings come from.

Three sources are consulted: the process environment (or a caller-supplied
``base``), a dotenv file, and explicit overrides. A dotenv line may be prefixed
with ``export`` and its value may be wrapped in matching quotes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, MutableMapping, Optional, Tuple

__all__ = ["Environment", "build_environment", "load_env_file"]

_EXPORT = "export "
_QUOTES = ("'", '"')


def _dotenv_entries(text: str) -> Iterator[Tuple[str, str]]:
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith(_EXPORT):
            line = line[len(_EXPORT):].lstrip()
        name, sep, value = line.partition("=")
        if not sep or not name or name.startswith("#"):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
            value = value[1:-1]
        yield name.strip(), value


def _read_dotenv(path: str) -> Dict[str, str]:
    # a missing file contributes nothing
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    return dict(_dotenv_entries(text))


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Copy dotenv entries into ``environ`` (default :data:`os.environ`).

    Keys ``environ`` already holds are left alone. Returns a snapshot of the
    result.
    """
    target: MutableMapping[str, str] = os.environ if environ is None else environ
    for name, value in _read_dotenv(path).items():
        if name not in target:
            target[name] = value
    return dict(target)


@dataclass(frozen=True)
class Environment:
    """Read-only view over the merged settings."""

    variables: Mapping[str, str]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)

    def prefixed(self, prefix: str) -> Dict[str, str]:
        return {name: value for name, value in self.variables.items() if name.startswith(prefix)}


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> Environment:
    """
    Layer the sources, lowest precedence first: dotenv file, ``base``, ``overrides``.

    ``env_file=None`` skips the dotenv file; ``base=None`` means :data:`os.environ`.
    """
    layers = [
        _read_dotenv(env_file) if env_file is not None else {},
        os.environ if base is None else base,
        overrides or {},
    ]
    merged: Dict[str, str] = {}
    for layer in layers:
        merged.update(layer)
    return Environment(variables=merged)
