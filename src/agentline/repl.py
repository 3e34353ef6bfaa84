"""Interactive session entrypoint: TTY uses prompt_toolkit, non-TTY reads stdin lines."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, Optional, TextIO

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, History, InMemoryHistory

from agentline.config import (
    ConfigError,
    CredentialNotConfiguredError,
    Settings,
    load_settings,
)
from agentline.debug_log import DebugLogWriter
from agentline.gateway.client import SessionGateway
from agentline.repl_commands import parse_input
from agentline.session_controller import (
    ExitReason,
    NoSession,
    SessionGatewayProtocol,
    SessionState,
    StartupConnectError,
    apply_input,
    connect_at_startup,
)
from agentline.ui.render import (
    error_line,
    plain_line,
    render_missing_token_lines,
    render_prompt,
    render_welcome_lines,
    success_line,
    write_lines,
)

LineReader = Callable[[str], str]
GatewayFactory = Callable[[Settings, DebugLogWriter], SessionGatewayProtocol]

_FAREWELLS = {
    ExitReason.QUIT: "Goodbye!",
    ExitReason.INTERRUPT: "Interrupted. Goodbye!",
    ExitReason.END_OF_INPUT: "End of input. Goodbye!",
}


@dataclass
class LoopOutcome:
    exit_reason: ExitReason
    state: SessionState


def start_session(
    *,
    session_ref: Optional[str] = None,
    api_url: Optional[str] = None,
    stream: TextIO = sys.stdout,
    gateway_factory: Optional[GatewayFactory] = None,
    line_reader: Optional[LineReader] = None,
) -> int:
    """Run one interactive session and return the process exit code."""

    try:
        settings = load_settings(api_url=api_url)
    except CredentialNotConfiguredError as exc:
        write_lines(render_missing_token_lines(exc), stream)
        return 1
    except ConfigError as exc:
        write_lines([error_line(str(exc))], stream)
        return 1

    debug_log = build_debug_log(settings)
    factory = gateway_factory or build_gateway
    gateway = factory(settings, debug_log)
    try:
        state: SessionState = NoSession()
        if session_ref:
            write_lines([plain_line("Connecting to existing session {0}...".format(session_ref))], stream)
            try:
                state = connect_at_startup(gateway, session_ref)
            except StartupConnectError as exc:
                write_lines([error_line("Failed to connect to session: {0}".format(exc.cause))], stream)
                return 1
            write_lines([success_line("Connected to session")], stream)

        write_lines(render_welcome_lines(), stream)
        reader = line_reader or build_line_reader(settings, stream)
        run_loop(state=state, gateway=gateway, read_line=reader, stream=stream)
        return 0
    finally:
        close = getattr(gateway, "close", None)
        if callable(close):
            close()


def run_loop(
    *,
    state: SessionState,
    gateway: SessionGatewayProtocol,
    read_line: LineReader,
    stream: TextIO = sys.stdout,
) -> LoopOutcome:
    while True:
        prompt = render_prompt(state.session_ref)
        try:
            line = read_line(prompt)
        except KeyboardInterrupt:
            return _finish(ExitReason.INTERRUPT, state, stream)
        except EOFError:
            return _finish(ExitReason.END_OF_INPUT, state, stream)
        except (OSError, RuntimeError, ValueError) as exc:
            write_lines([error_line("Error reading input: {0}".format(exc))], stream)
            return LoopOutcome(exit_reason=ExitReason.READ_ERROR, state=state)

        result = apply_input(state, parse_input(line), gateway)
        state = result.state
        write_lines(result.lines, stream)
        if result.exit_reason is not None:
            return _finish(result.exit_reason, state, stream)


def build_gateway(settings: Settings, debug_log: DebugLogWriter) -> SessionGateway:
    return SessionGateway(
        settings.api_token,
        settings.api_url,
        timeout=settings.api_timeout,
        debug_log=debug_log,
    )


def build_debug_log(settings: Settings) -> DebugLogWriter:
    return DebugLogWriter(
        logs_dir=settings.logs_dir,
        enabled=settings.logs_enabled,
        max_file_bytes=settings.logs_max_file_bytes,
        max_files=settings.logs_max_files,
        redaction=settings.logs_redaction,
    )


def build_line_reader(settings: Settings, stream: TextIO) -> LineReader:
    if not _stdin_is_tty():
        return _stdin_line_reader(stream)

    prompt_session: PromptSession[str] = PromptSession(history=_build_history(settings))
    return lambda prompt: prompt_session.prompt(prompt)


def _build_history(settings: Settings) -> History:
    if not settings.history_enabled:
        return InMemoryHistory()
    try:
        settings.history_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        return InMemoryHistory()
    return FileHistory(str(settings.history_file))


def _stdin_line_reader(stream: TextIO) -> LineReader:
    def read(prompt: str) -> str:
        stream.write(prompt)
        stream.flush()
        line = sys.stdin.readline()
        if line == "":
            raise EOFError
        return line

    return read


def _finish(reason: ExitReason, state: SessionState, stream: TextIO) -> LoopOutcome:
    write_lines([plain_line(_FAREWELLS[reason])], stream)
    return LoopOutcome(exit_reason=reason, state=state)


def _stdin_is_tty() -> bool:
    isatty = getattr(sys.stdin, "isatty", None)
    if callable(isatty):
        try:
            return bool(isatty())
        except (OSError, ValueError):
            return False
    return False
