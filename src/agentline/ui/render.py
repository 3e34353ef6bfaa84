"""Presentation helpers for agentline CLI output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, TextIO

from rich.console import Console
from rich.text import Text

from agentline.repl_commands import command_specs

SUCCESS_MARKER = "✓"
FAILURE_MARKER = "✗"

_LEVEL_STYLES = {
    "success": "green",
    "error": "red",
    "info": "cyan",
    "reply": "",
    "plain": "",
}


@dataclass(frozen=True)
class RenderedLine:
    level: str
    text: str

    @property
    def formatted(self) -> str:
        if self.level == "success":
            return "{0} {1}".format(SUCCESS_MARKER, self.text)
        if self.level == "error":
            return "{0} {1}".format(FAILURE_MARKER, self.text)
        return self.text


def success_line(text: str) -> RenderedLine:
    return RenderedLine(level="success", text=text)


def error_line(text: str) -> RenderedLine:
    return RenderedLine(level="error", text=text)


def info_line(text: str) -> RenderedLine:
    return RenderedLine(level="info", text=text)


def plain_line(text: str) -> RenderedLine:
    return RenderedLine(level="plain", text=text)


def reply_line(text: str) -> RenderedLine:
    return RenderedLine(level="reply", text=text)


def render_notice(level: str, text: str) -> str:
    return RenderedLine(level=level, text=text).formatted


def _is_tty(stream: TextIO, forced: Optional[bool]) -> bool:
    if forced is not None:
        return forced
    isatty = getattr(stream, "isatty", None)
    if callable(isatty):
        try:
            return bool(isatty())
        except (OSError, ValueError):
            return False
    return False


def write_lines(
    lines: Iterable[RenderedLine],
    stream: TextIO,
    is_tty: Optional[bool] = None,
) -> None:
    """Print rendered lines; colour is only applied on terminals."""

    if _is_tty(stream, is_tty):
        console = Console(
            file=stream,
            force_terminal=True,
            color_system="standard",
            highlight=False,
            soft_wrap=True,
        )
        for line in lines:
            console.print(Text(line.formatted, style=_LEVEL_STYLES.get(line.level, "")))
        return

    for line in lines:
        stream.write(line.formatted + "\n")
    stream.flush()


def render_help_lines() -> List[RenderedLine]:
    lines = [plain_line("Available commands:")]
    for spec in command_specs():
        lines.append(plain_line("  {0} - {1}".format(spec.usage, spec.summary)))
    lines.append(plain_line("Any other input will be sent as a message to the agent."))
    return lines


def render_welcome_lines() -> List[RenderedLine]:
    return [
        plain_line("Welcome to agentline"),
        plain_line("Type /quit to exit, /help for help"),
    ]


def render_session_lines(sessions: Sequence[Any]) -> List[RenderedLine]:
    if not sessions:
        return [info_line("No sessions found.")]

    lines = [plain_line("Available sessions:")]
    for session in sessions:
        updated = getattr(session, "updated_at", None)
        updated_part = ", updated: {0}".format(updated) if updated else ""
        lines.append(
            plain_line(
                "  {0} [{1}] (created: {2}{3})".format(
                    session.session_id,
                    session.status,
                    session.created_at,
                    updated_part,
                )
            )
        )
    return lines


def render_prompt(session_ref: Optional[str]) -> str:
    if not session_ref:
        return "> "
    return "[{0}] > ".format(session_ref)


def render_doctor_text(report: Dict[str, Any]) -> str:
    token_configured = bool(report.get("token_configured"))
    connection_ok = bool(report.get("connection_ok"))

    lines = [
        "Doctor Report",
        render_notice(
            "success" if token_configured else "error",
            "API token is configured" if token_configured else "API token not configured",
        ),
    ]
    if token_configured:
        lines.append("api_token={0}".format(report.get("api_token_masked", "")))
        lines.append("api_url={0}".format(report.get("api_url", "")))
        lines.append(render_notice("success", "API client created successfully"))
        if connection_ok:
            lines.append(render_notice("success", "Connected to the agent API successfully"))
        else:
            lines.append(
                render_notice(
                    "error",
                    "Failed to connect to the agent API: {0}".format(report.get("connection_error") or ""),
                )
            )

    lines.extend(
        [
            "",
            "Debug Logs",
            "logs_enabled={0}".format(bool(report.get("logs_enabled"))),
            "logs_active_file={0}".format(report.get("logs_active_file", "")),
            "logs_active_size_bytes={0} logs_total_size_bytes={1}".format(
                int(report.get("logs_active_size_bytes") or 0),
                int(report.get("logs_total_size_bytes") or 0),
            ),
            "logs_write_errors={0}".format(int(report.get("logs_write_errors") or 0)),
        ]
    )
    return "\n".join(lines)


def render_missing_token_lines(exc: Exception) -> List[RenderedLine]:
    return [
        error_line("API token not configured: {0}".format(exc)),
        plain_line(""),
        plain_line("Run 'agentline configure <token>' to set up your API token."),
    ]
