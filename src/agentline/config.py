"""Configuration loading, credential resolution and token display helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

try:  # pragma: no cover - exercised on Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Python 3.9/3.10
    import tomli as tomllib  # type: ignore[no-redef]

APP_NAME = "agentline"
CONFIG_FILE_NAME = "config.toml"
HISTORY_FILE_NAME = "history"
LOGS_DIR_NAME = "logs"

ENV_API_TOKEN = "AGENTLINE_API_TOKEN"
ENV_API_URL = "AGENTLINE_API_URL"
ENV_CONFIG_DIR = "AGENTLINE_CONFIG_DIR"

DEFAULT_API_URL = "https://api.devin.ai"
DEFAULT_API_TIMEOUT_SEC = 60
DEFAULT_SESSION_LIST_LIMIT = 100
DEFAULT_HISTORY_ENABLED = True
DEFAULT_LOGS_ENABLED = True
DEFAULT_LOGS_MAX_FILE_BYTES = 5 * 1024 * 1024
DEFAULT_LOGS_MAX_FILES = 3
DEFAULT_LOGS_REDACTION = "default"
ALLOWED_LOG_REDACTION = ("default", "none", "strict")

MASK_VISIBLE_CHARS = 4


class ConfigError(RuntimeError):
    """Raised when the user configuration cannot be read or written."""


class CredentialNotConfiguredError(ConfigError):
    """Raised when no API token is available from env or config file."""


class InvalidCredentialError(CredentialNotConfiguredError):
    """Raised when the stored or exported API token cannot be used."""


@dataclass
class UserConfig:
    api_token: str = ""
    api_url: str = DEFAULT_API_URL
    api_timeout: int = DEFAULT_API_TIMEOUT_SEC
    history_enabled: bool = DEFAULT_HISTORY_ENABLED
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES
    logs_redaction: str = DEFAULT_LOGS_REDACTION


@dataclass
class Settings:
    """Resolved runtime settings for one CLI invocation."""

    config_root: Path
    api_token: str
    api_url: str = DEFAULT_API_URL
    api_timeout: int = DEFAULT_API_TIMEOUT_SEC
    history_enabled: bool = DEFAULT_HISTORY_ENABLED
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES
    logs_redaction: str = DEFAULT_LOGS_REDACTION

    @property
    def config_file(self) -> Path:
        return self.config_root / CONFIG_FILE_NAME

    @property
    def history_file(self) -> Path:
        return self.config_root / HISTORY_FILE_NAME

    @property
    def logs_dir(self) -> Path:
        return self.config_root / LOGS_DIR_NAME


def resolve_config_root() -> Path:
    override = str(os.environ.get(ENV_CONFIG_DIR) or "").strip()
    if override:
        return Path(override).expanduser().resolve()
    return (Path.home() / ".config" / APP_NAME).resolve()


def config_file_path(config_root: Optional[Path] = None) -> Path:
    return (config_root or resolve_config_root()) / CONFIG_FILE_NAME


def _safe_positive_int(value: object, default: int) -> int:
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if converted <= 0:
        return default
    return converted


def _safe_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default


def _safe_redaction(value: object, default: str) -> str:
    normalized = str(value or default).strip().lower()
    if normalized not in ALLOWED_LOG_REDACTION:
        return default
    return normalized


def _safe_url(value: object, default: str) -> str:
    text = str(value or "").strip().rstrip("/")
    if not text:
        return default
    return text


def _section(data: Dict[str, object], name: str) -> Dict[str, object]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def _parse_user_config_data(data: Dict[str, object]) -> UserConfig:
    auth = _section(data, "auth")
    api = _section(data, "api")
    logs = _section(data, "logs")
    repl = _section(data, "repl")

    return UserConfig(
        api_token=str(auth.get("api_token") or "").strip(),
        api_url=_safe_url(api.get("url"), DEFAULT_API_URL),
        api_timeout=_safe_positive_int(api.get("timeout"), DEFAULT_API_TIMEOUT_SEC),
        history_enabled=_safe_bool(repl.get("history_enabled"), DEFAULT_HISTORY_ENABLED),
        logs_enabled=_safe_bool(logs.get("enabled"), DEFAULT_LOGS_ENABLED),
        logs_max_file_bytes=_safe_positive_int(logs.get("max_file_bytes"), DEFAULT_LOGS_MAX_FILE_BYTES),
        logs_max_files=_safe_positive_int(logs.get("max_files"), DEFAULT_LOGS_MAX_FILES),
        logs_redaction=_safe_redaction(logs.get("redaction"), DEFAULT_LOGS_REDACTION),
    )


def _toml_string(value: str) -> str:
    return '"{0}"'.format(str(value or "").replace("\\", "\\\\").replace('"', '\\"'))


def _render_user_config(config: UserConfig) -> str:
    lines: List[str] = [
        "[auth]",
        "api_token = {0}".format(_toml_string(config.api_token)),
        "",
        "[api]",
        "url = {0}".format(_toml_string(_safe_url(config.api_url, DEFAULT_API_URL))),
        "timeout = {0}".format(_safe_positive_int(config.api_timeout, DEFAULT_API_TIMEOUT_SEC)),
        "",
        "[repl]",
        "history_enabled = {0}".format(str(bool(config.history_enabled)).lower()),
        "",
        "[logs]",
        "enabled = {0}".format(str(bool(config.logs_enabled)).lower()),
        "max_file_bytes = {0}".format(
            _safe_positive_int(config.logs_max_file_bytes, DEFAULT_LOGS_MAX_FILE_BYTES)
        ),
        "max_files = {0}".format(_safe_positive_int(config.logs_max_files, DEFAULT_LOGS_MAX_FILES)),
        "redaction = {0}".format(
            _toml_string(_safe_redaction(config.logs_redaction, DEFAULT_LOGS_REDACTION))
        ),
        "",
    ]
    return "\n".join(lines)


def load_user_config(config_root: Optional[Path] = None) -> UserConfig:
    """Read the config file; a missing file yields defaults."""

    config_file = config_file_path(config_root)
    if not config_file.is_file():
        return UserConfig()

    try:
        parsed = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError("Invalid config file: {0}".format(config_file)) from exc

    if not isinstance(parsed, dict):
        raise ConfigError("Invalid config file: {0}".format(config_file))
    return _parse_user_config_data(parsed)


def save_user_config(config: UserConfig, config_root: Optional[Path] = None) -> Path:
    resolved_root = config_root or resolve_config_root()
    config_file = config_file_path(resolved_root)
    try:
        resolved_root.mkdir(parents=True, exist_ok=True)
        config_file.write_text(_render_user_config(config), encoding="utf-8")
    except OSError as exc:
        raise ConfigError("Cannot write config file: {0} ({1})".format(config_file, exc)) from exc
    return config_file


def validate_api_token(token: str) -> str:
    """Tokens travel in an HTTP header, so only printable ASCII is accepted."""

    normalized = str(token or "").strip()
    if any(not ("!" <= char <= "~") for char in normalized):
        raise InvalidCredentialError("API token must contain only printable ASCII characters")
    return normalized


def save_api_token(token: str, config_root: Optional[Path] = None) -> Path:
    """Persist the API token, keeping the other settings of the file intact."""

    normalized = validate_api_token(token)
    config = load_user_config(config_root)
    config.api_token = normalized
    return save_user_config(config, config_root)


def _env_api_token() -> str:
    return str(os.environ.get(ENV_API_TOKEN) or "").strip()


def _select_api_token(env_token: str, config: UserConfig) -> str:
    token = env_token or config.api_token
    if not token:
        raise CredentialNotConfiguredError("API token not found")
    return validate_api_token(token)


def resolve_api_token(config_root: Optional[Path] = None) -> str:
    """Return the API token from the environment, then from the config file."""

    env_token = _env_api_token()
    config = UserConfig() if env_token else load_user_config(config_root)
    return _select_api_token(env_token, config)


def mask_token(token: str) -> str:
    """Masks a token for display, showing only the first and last 4 characters."""

    if len(token) <= MASK_VISIBLE_CHARS * 2:
        return token
    return "{0}...{1}".format(token[:MASK_VISIBLE_CHARS], token[-MASK_VISIBLE_CHARS:])


def load_settings(
    api_url: Optional[str] = None,
    config_root: Optional[Path] = None,
) -> Settings:
    """Resolve settings from env + config file + explicit overrides.

    Raises ``CredentialNotConfiguredError`` when no token can be found, so
    callers can abort before any network work starts. An unreadable config
    file is only fatal when the environment does not supply the token.
    """

    resolved_root = config_root or resolve_config_root()
    env_token = _env_api_token()
    try:
        config = load_user_config(resolved_root)
    except ConfigError:
        if not env_token:
            raise
        config = UserConfig()
    token = _select_api_token(env_token, config)

    url = _safe_url(
        api_url or os.environ.get(ENV_API_URL) or config.api_url,
        DEFAULT_API_URL,
    )
    return Settings(
        config_root=resolved_root,
        api_token=token,
        api_url=url,
        api_timeout=config.api_timeout,
        history_enabled=config.history_enabled,
        logs_enabled=config.logs_enabled,
        logs_max_file_bytes=config.logs_max_file_bytes,
        logs_max_files=config.logs_max_files,
        logs_redaction=config.logs_redaction,
    )
