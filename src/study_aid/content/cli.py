"""Command-line entry points for content generation and its configuration."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich.console import Console

from study_aid.core import workspace as workspace_mod
from study_aid.core.logging import configure_logger
from study_aid.quizzer.console import RichPresenter, run_console_quiz

from . import config as config_mod
from .orchestrator import RequestOrchestrator
from .prompts import ContentType
from .provider import ContentProvider, OpenAIContentProvider


ProviderFactory = Callable[[config_mod.StudyAidConfig], ContentProvider]


def _build_generate_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="study-aid generate",
        description="Generate study notes, fun facts or an interactive quiz.",
    )
    parser.add_argument("topic", help="What to study, e.g. 'Photosynthesis'.")
    parser.add_argument(
        "--type",
        dest="content_type",
        default=ContentType.NOTES.value,
        choices=[member.value for member in ContentType],
        help="Kind of content to generate (default: notes).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to study-aid.toml (defaults to the workspace config).",
    )
    parser.add_argument(
        "--time-limit",
        type=_positive_seconds,
        metavar="SECONDS",
        help="End a quiz after this many seconds, scoring the rest as missed.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )
    return parser


def _positive_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if seconds <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return seconds


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="study-aid config",
        description="Manage the study-aid configuration file.",
    )
    subparsers = parser.add_subparsers(dest="config_command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Write the default configuration template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help="Destination for the config TOML (defaults to the workspace).",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file if present.",
    )

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate the active configuration file.",
    )
    validate_parser.add_argument("--path", type=Path)
    validate_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress success output; errors still print to stderr.",
    )

    path_parser = subparsers.add_parser(
        "path",
        help="Print the resolved config path.",
    )
    path_parser.add_argument("--path", type=Path)
    return parser


def _default_provider(cfg: config_mod.StudyAidConfig) -> ContentProvider:
    provider_cfg = cfg.provider
    return OpenAIContentProvider(
        model=provider_cfg.model,
        temperature=provider_cfg.temperature,
        max_output_tokens=provider_cfg.max_output_tokens,
        request_timeout=provider_cfg.request_timeout_seconds,
        api_base=provider_cfg.api_base,
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[Callable[[], str]] = None,
    provider_factory: ProviderFactory = _default_provider,
) -> int:
    """Run ``study-aid generate``; quizzes continue as an interactive loop."""

    parser = _build_generate_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        cfg = config_mod.load_config(explicit_path=args.config)
        layout = workspace_mod.ensure_workspace()
    except (config_mod.ConfigError, workspace_mod.WorkspaceError) as exc:
        _print_error(str(exc))
        return 2

    logger, _ = configure_logger(
        "study_aid.generate",
        log_dir=layout.path_for("logs"),
        level=cfg.logging.level,
        verbose=args.verbose or cfg.logging.verbose,
    )
    logger.debug("generate CLI invoked")

    try:
        provider = provider_factory(cfg)
    except RuntimeError as exc:
        _print_error(str(exc))
        return 2

    out = console or Console()
    orchestrator = RequestOrchestrator(
        provider,
        RichPresenter(out),
        timeout=cfg.generation.timeout_seconds,
        logger=logger,
    )
    outcome = asyncio.run(orchestrator.submit(args.topic, args.content_type))
    if outcome.status != "delivered":
        return 1

    if orchestrator.session is not None:
        reader = input_provider or (lambda: out.input("[bold]> [/]"))
        exit_action = run_console_quiz(
            orchestrator, out, reader, time_limit=args.time_limit
        )
        return 1 if exit_action == "quit" else 0
    return 0


def config_main(argv: Sequence[str] | None = None) -> int:
    parser = _build_config_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    handlers = {
        "init": _handle_config_init,
        "validate": _handle_config_validate,
        "path": _handle_config_path,
    }
    return handlers[args.config_command](args)


def _handle_config_init(args: argparse.Namespace) -> int:
    try:
        target = config_mod.resolve_config_path(explicit_path=args.path)
        config_mod.write_template(target, overwrite=args.force)
    except config_mod.ConfigError as exc:
        _print_error(str(exc))
        return 2
    print(f"Wrote config template to {target}")
    return 0


def _handle_config_validate(args: argparse.Namespace) -> int:
    try:
        cfg = config_mod.load_config(explicit_path=args.path)
    except config_mod.ConfigError as exc:
        _print_error(str(exc))
        return 2
    if not args.quiet:
        print("Configuration OK")
        print(f"  model: {cfg.provider.model}")
        print(f"  api_base: {cfg.provider.api_base or '(default)'}")
        print(f"  timeout_seconds: {cfg.generation.timeout_seconds:g}")
        print(f"  server: {cfg.server.host}:{cfg.server.port}")
    return 0


def _handle_config_path(args: argparse.Namespace) -> int:
    try:
        path = config_mod.resolve_config_path(explicit_path=args.path)
    except config_mod.ConfigError as exc:
        _print_error(str(exc))
        return 2
    print(path)
    return 0


def _print_error(message: str) -> None:
    sys.stderr.write(message + "\n")


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
