"""``study-aid``: one entry point dispatching to per-feature commands.

Subcommand modules are imported only when their command runs, so
``study-aid list`` works without loading FastAPI or the OpenAI SDK.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Mapping, Optional, Sequence, TextIO


CommandHandler = Callable[[Sequence[str]], Optional[int]]


@dataclass(frozen=True)
class CommandSpec:
    """A subcommand and the ``module:function`` implementing it."""

    name: str
    summary: str
    target: str
    is_interactive: bool = False

    def load(self) -> CommandHandler:
        module_name, _, func_name = self.target.partition(":")
        return getattr(import_module(module_name), func_name or "main")

    @property
    def prog(self) -> str:
        return f"study-aid {self.name}"


COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec
    for spec in (
        CommandSpec(
            "init",
            "Create the workspace (config and logs directories).",
            "study_aid.workspace.cli:main",
        ),
        CommandSpec(
            "config",
            "Write, validate or locate study-aid.toml.",
            "study_aid.content.cli:config_main",
        ),
        CommandSpec(
            "generate",
            "Generate notes, fun facts or a quiz for a topic.",
            "study_aid.content.cli:main",
            is_interactive=True,
        ),
        CommandSpec(
            "serve",
            "Run the HTTP backend exposing POST /generate.",
            "study_aid.server.cli:main",
        ),
    )
}


def format_command_table() -> str:
    width = max(len(name) for name in COMMANDS)
    rows = ["Available commands:"]
    for spec in COMMANDS.values():
        marker = " (interactive)" if spec.is_interactive else ""
        rows.append(f"  {spec.name:<{width}}  {spec.summary}{marker}")
    return "\n".join(rows)


def format_usage() -> str:
    return "\n".join(
        [
            "Usage: study-aid <command> [args...]",
            "       study-aid help <command> | list | version",
            "",
            format_command_table(),
        ]
    )


def _emit(text: str, stream: Optional[TextIO] = None) -> None:
    (stream or sys.stdout).write(text + "\n")


def _unknown(name: str) -> int:
    _emit(f"Unknown command '{name}'.", sys.stderr)
    _emit(format_command_table(), sys.stderr)
    return 2


def _version() -> str:
    try:
        return metadata.version("study-aid")
    except metadata.PackageNotFoundError:
        return "unknown"


def _help(args: Sequence[str]) -> int:
    if not args:
        _emit(format_usage())
        return 0
    spec = COMMANDS.get(args[0])
    if spec is None:
        return _unknown(args[0])
    _emit(f"{spec.name}: {spec.summary}")
    _emit(f"Run `{spec.prog} --help` for command options.")
    return 0


def run_command(spec: CommandSpec, argv: Sequence[str]) -> int:
    """Run ``spec`` with ``argv`` so argparse reports the right prog name."""

    handler = spec.load()
    saved = sys.argv
    sys.argv = [spec.prog, *argv]
    try:
        result = handler(list(argv))
    except SystemExit as exc:
        return _exit_code(exc)
    finally:
        sys.argv = saved
    return result if isinstance(result, int) else 0


def _exit_code(exc: SystemExit) -> int:
    if exc.code is None or isinstance(exc.code, int):
        return exc.code or 0
    _emit(str(exc.code), sys.stderr)
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _emit(format_usage())
        return 2

    command, rest = args[0], args[1:]
    if command in ("-h", "--help"):
        _emit(format_usage())
        return 0
    if command in ("-V", "--version", "version"):
        _emit(_version())
        return 0
    if command == "list":
        _emit(format_command_table())
        return 0
    if command == "help":
        return _help(rest)

    spec = COMMANDS.get(command)
    if spec is None:
        return _unknown(command)
    return run_command(spec, rest)


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
