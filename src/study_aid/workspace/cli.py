"""``study-aid init``: create the workspace directories."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from study_aid.core import workspace as workspace_mod


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="study-aid init",
        description=(
            "Create the study-aid workspace holding study-aid.toml and the "
            "JSON log files."
        ),
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Workspace root to create (defaults to $STUDY_AID_DATA_HOME, "
            "then ~/.study-aid-data)."
        ),
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Print nothing on success.",
    )
    return parser


def describe(layout: workspace_mod.WorkspaceLayout) -> str:
    """Summarize ``layout`` with a created/exists marker per directory."""

    def status(key: str) -> str:
        return "created" if layout.created.get(key) else "exists"

    width = max(len(name) for name in layout.directories)
    lines = [f"Workspace ready at {layout.home} ({status('home')})"]
    lines.append("Subdirectories:")
    lines.extend(
        f"  {name:<{width}}  {directory} ({status(name)})"
        for name, directory in layout.items()
    )
    lines.append(
        "Next: run `study-aid config init` to write a config template."
    )
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(
        list(argv) if argv is not None else None
    )
    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
    except workspace_mod.WorkspaceError as exc:
        sys.stderr.write(f"{exc}\n")
        return 2
    if not args.quiet:
        sys.stdout.write(describe(layout) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
