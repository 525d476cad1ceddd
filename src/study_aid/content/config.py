"""Configuration for content generation, the HTTP server and logging.

Settings live in ``study-aid.toml``. Values not present in the file fall back
to the defaults below; unknown keys are rejected so typos surface early.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from study_aid.core import config as toml_config
from study_aid.core import workspace as workspace_mod


CONFIG_PATH_ENV = "STUDY_AID_CONFIG"
CONFIG_FILENAME = "study-aid.toml"


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class ProviderConfig:
    model: str
    temperature: float
    max_output_tokens: int
    api_base: Optional[str]
    request_timeout_seconds: float


@dataclass(frozen=True)
class GenerationConfig:
    timeout_seconds: float


@dataclass(frozen=True)
class ServerConfig:
    host: str
    port: int


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class StudyAidConfig:
    provider: ProviderConfig
    generation: GenerationConfig
    server: ServerConfig
    logging: LoggingConfig


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_positive_number(value: Any, *, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    if value <= 0:
        raise ConfigError(f"'{field}' must be greater than zero.")
    return float(value)


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _coerce_optional_string(value: Any, *, field: str) -> Optional[str]:
    if value is None:
        return None
    return _require_string(value, field=field)


def _build_provider(section: Mapping[str, Any]) -> ProviderConfig:
    return ProviderConfig(
        model=_require_string(section.get("model"), field="provider.model"),
        temperature=_require_float_range(
            section.get("temperature"),
            field="provider.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_output_tokens=_require_positive_int(
            section.get("max_output_tokens"),
            field="provider.max_output_tokens",
        ),
        api_base=_coerce_optional_string(
            section.get("api_base"), field="provider.api_base"
        ),
        request_timeout_seconds=_require_positive_number(
            section.get("request_timeout_seconds"),
            field="provider.request_timeout_seconds",
        ),
    )


def _build_server(section: Mapping[str, Any]) -> ServerConfig:
    port = _require_positive_int(section.get("port"), field="server.port")
    if port > 65535:
        raise ConfigError("'server.port' must be at most 65535.")
    return ServerConfig(
        host=_require_string(section.get("host"), field="server.host"),
        port=port,
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _require_string(section.get("level"), field="logging.level").upper()
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if level not in allowed:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingConfig(level=level, verbose=verbose)


def _build_config(tree: Mapping[str, Any]) -> StudyAidConfig:
    generation = tree["generation"]
    return StudyAidConfig(
        provider=_build_provider(tree["provider"]),
        generation=GenerationConfig(
            timeout_seconds=_require_positive_number(
                generation.get("timeout_seconds"),
                field="generation.timeout_seconds",
            )
        ),
        server=_build_server(tree["server"]),
        logging=_build_logging(tree["logging"]),
    )


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().resolve()
    env_override = (env_map.get(CONFIG_PATH_ENV) or "").strip()
    if env_override:
        return Path(env_override).expanduser().resolve()
    try:
        layout = workspace_mod.ensure_workspace(env=env_map, create=False)
    except workspace_mod.WorkspaceError as exc:
        raise ConfigError(str(exc)) from exc
    return layout.path_for("config") / CONFIG_FILENAME


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> StudyAidConfig:
    """Load the TOML config, applying defaults and validation.

    A missing file at the implicit workspace location yields the defaults;
    a missing file that was asked for explicitly (argument or env) is an
    error.
    """

    env_map = os.environ if env is None else env
    path = resolve_config_path(explicit_path=explicit_path, env=env_map)
    tree = default_tree()
    implicit = explicit_path is None and not env_map.get(CONFIG_PATH_ENV)
    if implicit and not path.exists():
        return _build_config(tree)
    try:
        data = toml_config.load_toml(path)
        toml_config.merge_defaults(tree, data)
    except toml_config.TomlConfigError as exc:
        raise ConfigError(str(exc)) from exc
    return _build_config(tree)


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def config_template() -> str:
    """Return the TOML template recommended for new installs."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return toml_config.write_toml_template(
            path, template=config_template(), overwrite=overwrite
        )
    except toml_config.TomlConfigError as exc:
        raise ConfigError(str(exc)) from exc


# TOML has no null: omit ``api_base`` from the file to keep the SDK default.
_DEFAULTS: Dict[str, Any] = {
    "provider": {
        "model": "gpt-4o-mini",
        "temperature": 0.7,
        "max_output_tokens": 1500,
        "api_base": None,
        "request_timeout_seconds": 30,
    },
    "generation": {
        "timeout_seconds": 30,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 3000,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# study-aid configuration

[provider]
# Chat completion model used for notes, facts and quizzes
model = "gpt-4o-mini"
# Sampling temperature (0.0-2.0)
temperature = 0.7
max_output_tokens = 1500
# Any OpenAI-compatible endpoint, e.g. Gemini's
# api_base = "https://generativelanguage.googleapis.com/v1beta/openai/"
request_timeout_seconds = 30

[generation]
# Give up on a request after this many seconds
timeout_seconds = 30

[server]
host = "127.0.0.1"
port = 3000

[logging]
level = "INFO"
verbose = false
"""
