"""``study-aid serve``: run the HTTP backend with uvicorn."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

import uvicorn

from study_aid.content import config as config_mod
from study_aid.core import workspace as workspace_mod
from study_aid.core.logging import configure_logger

from .app import create_app


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="study-aid serve",
        description="Serve POST /generate for notes, facts and quizzes.",
    )
    parser.add_argument("--host", help="Bind address (defaults to config).")
    parser.add_argument(
        "--port", type=int, help="Bind port (defaults to config)."
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to study-aid.toml (defaults to the workspace config).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        cfg = config_mod.load_config(explicit_path=args.config)
        layout = workspace_mod.ensure_workspace()
    except (config_mod.ConfigError, workspace_mod.WorkspaceError) as exc:
        sys.stderr.write(str(exc) + "\n")
        return 2

    logger, log_path = configure_logger(
        "study_aid.server",
        log_dir=layout.path_for("logs"),
        level=cfg.logging.level,
        verbose=args.verbose or cfg.logging.verbose,
    )
    try:
        app = create_app(config=cfg, logger=logger)
    except RuntimeError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 2

    host = args.host or cfg.server.host
    port = args.port or cfg.server.port
    logger.info(
        "Starting study-aid server",
        extra={"host": host, "port": port, "log_path": log_path},
    )
    uvicorn.run(app, host=host, port=port)
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
