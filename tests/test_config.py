from __future__ import annotations

from pathlib import Path

import pytest

from agentline.config import (
    DEFAULT_API_URL,
    ConfigError,
    CredentialNotConfiguredError,
    InvalidCredentialError,
    UserConfig,
    load_settings,
    load_user_config,
    mask_token,
    resolve_api_token,
    save_api_token,
    save_user_config,
    validate_api_token,
)


def test_mask_token():
    assert mask_token("12345678") == "12345678"
    assert mask_token("1234567890") == "1234...7890"
    assert mask_token("abcdefghijklmnopqrstuvwxyz") == "abcd...wxyz"
    assert mask_token("") == ""


def test_env_token_wins_over_config_file(isolated_env, monkeypatch):
    save_api_token("file-token-abcdef")
    monkeypatch.setenv("AGENTLINE_API_TOKEN", "test-token-cli")

    assert resolve_api_token() == "test-token-cli"


def test_blank_env_token_falls_back_to_config_file(isolated_env, monkeypatch):
    save_api_token("file-token-abcdef")
    monkeypatch.setenv("AGENTLINE_API_TOKEN", "   ")

    assert resolve_api_token() == "file-token-abcdef"


def test_config_roundtrip(isolated_env):
    path = save_api_token("test-token-cli")

    assert path == Path(isolated_env["config_root"]) / "config.toml"
    assert resolve_api_token() == "test-token-cli"


def test_missing_token_raises(isolated_env):
    with pytest.raises(CredentialNotConfiguredError):
        resolve_api_token()


def test_save_token_keeps_other_settings(isolated_env):
    save_user_config(UserConfig(api_url="https://custom.example.test", api_timeout=12, logs_enabled=False))

    save_api_token("new-token-123456")
    config = load_user_config()

    assert config.api_token == "new-token-123456"
    assert config.api_url == "https://custom.example.test"
    assert config.api_timeout == 12
    assert config.logs_enabled is False


def test_invalid_values_degrade_to_defaults(isolated_env):
    config_root = Path(isolated_env["config_root"])
    config_root.mkdir(parents=True)
    (config_root / "config.toml").write_text(
        "\n".join(
            [
                "[api]",
                'url = ""',
                'timeout = "soon"',
                "[logs]",
                "max_files = -3",
                'redaction = "everything"',
            ]
        ),
        encoding="utf-8",
    )

    config = load_user_config()

    assert config.api_url == DEFAULT_API_URL
    assert config.api_timeout == 60
    assert config.logs_max_files == 3
    assert config.logs_redaction == "default"


def test_unparseable_config_file_is_config_error(isolated_env):
    config_root = Path(isolated_env["config_root"])
    config_root.mkdir(parents=True)
    (config_root / "config.toml").write_text("[auth\napi_token = ", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_user_config()


def test_load_settings_url_precedence(isolated_env, monkeypatch):
    save_user_config(UserConfig(api_token="file-token-abcdef", api_url="https://file.example.test"))

    assert load_settings().api_url == "https://file.example.test"

    monkeypatch.setenv("AGENTLINE_API_URL", "https://env.example.test/")
    assert load_settings().api_url == "https://env.example.test"

    assert load_settings(api_url="https://flag.example.test").api_url == "https://flag.example.test"


def test_load_settings_requires_token(isolated_env):
    with pytest.raises(CredentialNotConfiguredError):
        load_settings()


def test_non_ascii_env_token_is_rejected(isolated_env, monkeypatch):
    monkeypatch.setenv("AGENTLINE_API_TOKEN", "tökén-abcdefgh")

    with pytest.raises(InvalidCredentialError):
        resolve_api_token()
    with pytest.raises(CredentialNotConfiguredError):
        load_settings()


def test_non_ascii_token_is_not_saved(isolated_env):
    with pytest.raises(InvalidCredentialError):
        save_api_token("tökén-abcdefgh")

    assert not (Path(isolated_env["config_root"]) / "config.toml").exists()


def test_token_with_inner_whitespace_is_rejected(isolated_env):
    with pytest.raises(InvalidCredentialError):
        validate_api_token("abc def")
    assert validate_api_token("  abc-def_123  ") == "abc-def_123"


def test_env_token_survives_unreadable_config_file(isolated_env, monkeypatch):
    config_root = Path(isolated_env["config_root"])
    config_root.mkdir(parents=True)
    (config_root / "config.toml").write_text("[auth\napi_token = ", encoding="utf-8")
    monkeypatch.setenv("AGENTLINE_API_TOKEN", "test-token-cli")

    settings = load_settings()

    assert settings.api_token == "test-token-cli"
    assert settings.api_url == DEFAULT_API_URL
    assert resolve_api_token() == "test-token-cli"
