"""Setup and connectivity diagnostics behind ``agentline doctor``."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Optional

from agentline.config import (
    LOGS_DIR_NAME,
    ConfigError,
    CredentialNotConfiguredError,
    Settings,
    UserConfig,
    config_file_path,
    load_settings,
    load_user_config,
    mask_token,
    resolve_config_root,
)
from agentline.debug_log import DebugLogWriter
from agentline.gateway.errors import GatewayError, gateway_error_summary
from agentline.repl import build_debug_log, build_gateway

DoctorGatewayFactory = Callable[[Settings, DebugLogWriter], Any]


def run_doctor(
    api_url: Optional[str] = None,
    gateway_factory: Optional[DoctorGatewayFactory] = None,
) -> Dict[str, Any]:
    config_root = resolve_config_root()
    report: Dict[str, Any] = {
        "config_file": str(config_file_path(config_root)),
        "token_configured": False,
        "token_error": "",
        "api_token_masked": "",
        "api_url": "",
        "client_created": False,
        "connection_ok": False,
        "connection_error": "",
    }

    try:
        settings = load_settings(api_url=api_url, config_root=config_root)
    except CredentialNotConfiguredError as exc:
        report["token_error"] = str(exc)
        report.update(_offline_log_status(config_root))
        return report
    except ConfigError as exc:
        report["token_error"] = str(exc)
        return report

    report["token_configured"] = True
    report["api_token_masked"] = mask_token(settings.api_token)
    report["api_url"] = settings.api_url

    debug_log = build_debug_log(settings)
    factory = gateway_factory or build_gateway
    gateway = factory(settings, debug_log)
    report["client_created"] = True
    try:
        gateway.check_connection()
        report["connection_ok"] = True
    except GatewayError as exc:
        report["connection_error"] = gateway_error_summary(exc)
    finally:
        close = getattr(gateway, "close", None)
        if callable(close):
            close()

    report.update(debug_log.status())
    return report


def doctor_exit_code(report: Dict[str, Any]) -> int:
    if not report.get("token_configured"):
        return 1
    if not report.get("connection_ok"):
        return 1
    return 0


def _offline_log_status(config_root: Path) -> Dict[str, Any]:
    try:
        config = load_user_config(config_root)
    except ConfigError:
        config = UserConfig()
    writer = DebugLogWriter(
        logs_dir=config_root / LOGS_DIR_NAME,
        enabled=config.logs_enabled,
        max_file_bytes=config.logs_max_file_bytes,
        max_files=config.logs_max_files,
        redaction=config.logs_redaction,
    )
    return writer.status()
