from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, TypeVar

import os

T = TypeVar("T")


def unique_ordered(values: Iterable[str]) -> list[str]:
    """Return de-duplicated values while preserving order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def chunked(values: list[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError("size must be at least 1")
    for start in range(0, len(values), size):
        yield values[start : start + size]


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def load_env_file(path: Path | str, override: bool = False) -> dict[str, str]:
    """Load ``KEY=value`` lines (optionally prefixed with ``export``) into os.environ.

    Existing variables win unless ``override`` is set; returns the keys set.
    """
    env_path = Path(path)
    if not env_path.is_file():
        return {}

    loaded: dict[str, str] = {}
    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        if not key or (key in os.environ and not override):
            continue
        os.environ[key] = loaded[key] = value.strip().strip("'\"")
    return loaded
