"""TOML helpers behind ``study-aid.toml``.

Callers keep a tree of defaults and overlay the user's document on it with
:func:`merge_defaults`. The overlay is strict: every key must already exist in
the defaults and tables may only replace tables, so a typo such as
``[provdier]`` is reported instead of silently ignored.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Iterator, Mapping, MutableMapping

__all__ = [
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
]


class TomlConfigError(RuntimeError):
    """Raised when a TOML document cannot be read, parsed or merged."""


def load_toml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise TomlConfigError(f"Config file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TomlConfigError(f"Could not read config {path}: {exc}") from exc
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(
            f"Failed to parse config TOML {path}: {exc}"
        ) from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
) -> None:
    """Overlay ``override`` onto ``base`` in place.

    All problems are collected first and reported together, so nothing in
    ``base`` changes when the overlay is rejected.
    """

    problems = list(_check_overlay(base, override, prefix=""))
    if problems:
        raise TomlConfigError("; ".join(problems))
    _apply_overlay(base, override)


def _check_overlay(
    base: Mapping[str, Any], override: Mapping[str, Any], *, prefix: str
) -> Iterator[str]:
    for key in sorted(override):
        dotted = prefix + key
        if key not in base:
            yield f"Unknown configuration key '{dotted}'."
            continue
        expected, value = base[key], override[key]
        if isinstance(expected, Mapping):
            if isinstance(value, Mapping):
                yield from _check_overlay(expected, value, prefix=dotted + ".")
            else:
                yield (
                    f"Expected table for '{dotted}', found "
                    f"{type(value).__name__}."
                )
        elif isinstance(value, Mapping):
            yield f"'{dotted}' is a value, not a table."


def _apply_overlay(
    base: MutableMapping[str, Any], override: Mapping[str, Any]
) -> None:
    for key, value in override.items():
        if isinstance(base[key], MutableMapping):
            _apply_overlay(base[key], value)
        else:
            base[key] = value


def write_toml_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
    mode: int = 0o600,
) -> Path:
    """Write ``template`` to ``path``, keeping an existing file by default."""

    if path.exists() and not overwrite:
        raise TomlConfigError(
            f"Config already exists: {path} (pass --force to replace it)"
        )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(template, encoding="utf-8")
    except OSError as exc:
        raise TomlConfigError(f"Could not write config {path}: {exc}") from exc
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path
