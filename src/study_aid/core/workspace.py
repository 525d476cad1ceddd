"""The study-aid workspace: where the config file and JSON logs live.

The root defaults to ``~/.study-aid-data`` and can be moved with
``STUDY_AID_DATA_HOME``. Two subdirectories are managed beneath it:
``config`` (``study-aid.toml``) and ``logs``.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


WORKSPACE_ENV = "STUDY_AID_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".study-aid-data"
SUBDIRECTORIES = ("config", "logs")


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    """Resolved workspace paths and which of them were just created."""

    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        try:
            return self.directories[key]
        except KeyError as exc:
            raise KeyError(f"Unknown workspace directory '{key}'.") from exc

    def items(self) -> tuple[tuple[str, Path], ...]:
        return tuple(self.directories.items())


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Resolve the workspace and, unless ``create`` is off, build it.

    ``path`` wins over ``STUDY_AID_DATA_HOME``, which wins over the default.
    Only the default location falls back to the temp directory when it is
    not writable; an explicit location that cannot be used is an error.
    """

    root, explicit = _workspace_root(os.environ if env is None else env, path)
    if not create:
        return _inspect(root)
    try:
        return _build(root)
    except PermissionError as exc:
        if explicit:
            raise WorkspaceError(
                f"Unable to prepare workspace at {root}"
            ) from exc
        fallback = _fallback_base()
        try:
            return _build(fallback)
        except PermissionError as fallback_exc:
            raise WorkspaceError(
                f"Unable to prepare workspace at {root} or {fallback}"
            ) from fallback_exc


def _workspace_root(
    env: Mapping[str, str], override: Path | None
) -> tuple[Path, bool]:
    custom = (env.get(WORKSPACE_ENV) or "").strip()
    if override is not None:
        candidate, explicit = override, True
    elif custom:
        candidate, explicit = Path(custom), True
    else:
        candidate, explicit = DEFAULT_WORKSPACE, False
    candidate = candidate.expanduser()
    try:
        return candidate.resolve(), explicit
    except OSError:
        return candidate.absolute(), explicit


def _fallback_base() -> Path:
    return Path(tempfile.gettempdir()) / "study-aid-data"


def _inspect(root: Path) -> WorkspaceLayout:
    _reject_file(root, "workspace")
    directories = {name: root / name for name in SUBDIRECTORIES}
    for name, directory in directories.items():
        _reject_file(directory, name)
    created = {name: False for name in ("home", *SUBDIRECTORIES)}
    return _layout(root, directories, created)


def _build(root: Path) -> WorkspaceLayout:
    created = {"home": _make_dir(root, "workspace")}
    directories = {}
    for name in SUBDIRECTORIES:
        directories[name] = root / name
        created[name] = _make_dir(directories[name], name)
    return _layout(root, directories, created)


def _layout(
    root: Path, directories: dict[str, Path], created: dict[str, bool]
) -> WorkspaceLayout:
    return WorkspaceLayout(
        home=root,
        directories=MappingProxyType(directories),
        created=MappingProxyType(created),
    )


def _reject_file(path: Path, label: str) -> None:
    if path.exists() and not path.is_dir():
        raise WorkspaceError(
            f"The {label} path exists and is not a directory: {path}"
        )


def _make_dir(path: Path, label: str) -> bool:
    """Create ``path`` (mode 0700) and report whether it was new."""

    _reject_file(path, label)
    existed = path.exists()
    path.mkdir(parents=True, exist_ok=True)
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
    return not existed
