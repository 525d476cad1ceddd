from __future__ import annotations

from pathlib import Path

import pytest

from study_aid.content import config as config_mod


def write_config(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    return path


def test_missing_workspace_config_yields_defaults(workspace_home) -> None:
    cfg = config_mod.load_config()

    assert cfg.provider.model == "gpt-4o-mini"
    assert cfg.provider.api_base is None
    assert cfg.generation.timeout_seconds == 30.0
    assert cfg.server.port == 3000
    assert cfg.logging.level == "INFO"
    assert not workspace_home.exists()


def test_resolve_prefers_explicit_then_env(tmp_path, workspace_home) -> None:
    explicit = tmp_path / "explicit.toml"
    env_path = tmp_path / "env.toml"
    env = {
        "STUDY_AID_CONFIG": str(env_path),
        "STUDY_AID_DATA_HOME": str(workspace_home),
    }

    assert config_mod.resolve_config_path(explicit_path=explicit, env=env) == (
        explicit.resolve()
    )
    assert config_mod.resolve_config_path(env=env) == env_path.resolve()
    assert config_mod.resolve_config_path() == (
        workspace_home.resolve() / "config" / config_mod.CONFIG_FILENAME
    )


def test_partial_file_merges_with_defaults(tmp_path) -> None:
    path = write_config(
        tmp_path / "study-aid.toml",
        """
[provider]
model = "gemini-2.0-flash"
api_base = "https://generativelanguage.googleapis.com/v1beta/openai/"
temperature = 0.2

[logging]
level = "debug"
""",
    )

    cfg = config_mod.load_config(explicit_path=path)

    assert cfg.provider.model == "gemini-2.0-flash"
    assert cfg.provider.api_base.endswith("/openai/")
    assert cfg.provider.temperature == 0.2
    assert cfg.provider.max_output_tokens == 1500
    assert cfg.logging.level == "DEBUG"


def test_env_config_path_is_used(tmp_path, monkeypatch) -> None:
    path = write_config(tmp_path / "env.toml", "[server]\nport = 8080\n")
    monkeypatch.setenv(config_mod.CONFIG_PATH_ENV, str(path))

    assert config_mod.load_config().server.port == 8080


def test_explicit_missing_file_is_an_error(tmp_path) -> None:
    with pytest.raises(config_mod.ConfigError) as exc:
        config_mod.load_config(explicit_path=tmp_path / "nope.toml")
    assert "not found" in str(exc.value)


@pytest.mark.parametrize(
    "body, fragment",
    [
        ("[provider]\nmodle = 'x'\n", "provider.modle"),
        ("[extras]\nfoo = 1\n", "extras"),
        ("provider = 3\n", "Expected table"),
        ("[provider]\ntemperature = 3.5\n", "provider.temperature"),
        ("[provider]\nmax_output_tokens = 0\n", "max_output_tokens"),
        ("[generation]\ntimeout_seconds = -1\n", "timeout_seconds"),
        ("[server]\nport = 70000\n", "server.port"),
        ("[server]\nhost = ''\n", "server.host"),
        ("[logging]\nlevel = 'LOUD'\n", "logging.level"),
        ("[logging]\nverbose = 'yes'\n", "logging.verbose"),
        ("[provider\n", "parse"),
    ],
)
def test_invalid_config_rejected(tmp_path, body: str, fragment: str) -> None:
    path = write_config(tmp_path / "bad.toml", body)
    with pytest.raises(config_mod.ConfigError) as exc:
        config_mod.load_config(explicit_path=path)
    assert fragment in str(exc.value)


def test_template_round_trips_to_defaults(tmp_path) -> None:
    target = config_mod.write_template(tmp_path / "cfg" / "study-aid.toml")

    cfg = config_mod.load_config(explicit_path=target)

    assert cfg == config_mod.load_config()
    with pytest.raises(config_mod.ConfigError):
        config_mod.write_template(target)
    assert config_mod.write_template(target, overwrite=True) == target


def test_default_tree_is_a_copy() -> None:
    tree = config_mod.default_tree()
    tree["provider"]["model"] = "mutated"
    assert config_mod.default_tree()["provider"]["model"] == "gpt-4o-mini"
