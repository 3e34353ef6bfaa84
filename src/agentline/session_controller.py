"""Session state machine driving the interactive chat loop.

The controller never touches the terminal. ``apply_input`` takes the current
state and one parsed line, performs the gateway calls that line requires and
returns the next state together with the lines to render. Gateway failures
are turned into a single error line; they never escape ``apply_input``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Sequence, Union

from agentline.gateway.errors import GatewayError
from agentline.gateway.models import MessageReply, SessionSummary
from agentline.repl_commands import (
    ChatMessage,
    CommandAction,
    EmptyInput,
    ParsedInput,
    SlashCommand,
)
from agentline.ui.render import (
    RenderedLine,
    error_line,
    plain_line,
    render_help_lines,
    render_session_lines,
    reply_line,
    success_line,
)


class SessionGatewayProtocol(Protocol):
    def create_session(self, prompt: str) -> str:
        ...

    def send_message(self, session_id: str, message: str) -> MessageReply:
        ...

    def list_sessions(self, limit: Optional[int] = None) -> Sequence[SessionSummary]:
        ...

    def get_session_details(self, session_id: str) -> SessionSummary:
        ...


@dataclass(frozen=True)
class NoSession:
    @property
    def session_ref(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class InSession:
    session_ref: str

    def __post_init__(self) -> None:
        if not self.session_ref:
            raise ValueError("session_ref must be a non-empty string")


SessionState = Union[NoSession, InSession]


class ExitReason(str, Enum):
    QUIT = "quit"
    INTERRUPT = "interrupt"
    END_OF_INPUT = "end_of_input"
    READ_ERROR = "read_error"


@dataclass
class StepResult:
    state: SessionState
    lines: List[RenderedLine] = field(default_factory=list)
    exit_reason: Optional[ExitReason] = None

    @property
    def exit_requested(self) -> bool:
        return self.exit_reason is not None


class StartupConnectError(RuntimeError):
    """Raised when the session requested on the command line cannot be reached."""

    def __init__(self, session_ref: str, cause: GatewayError) -> None:
        super().__init__("Failed to connect to session {0}: {1}".format(session_ref, cause))
        self.session_ref = session_ref
        self.cause = cause


def connect_at_startup(gateway: SessionGatewayProtocol, session_ref: str) -> InSession:
    """Verify ``session_ref`` before the loop starts; failure is fatal."""

    try:
        gateway.get_session_details(session_ref)
    except GatewayError as exc:
        raise StartupConnectError(session_ref, exc) from exc
    return InSession(session_ref)


def apply_input(
    state: SessionState,
    parsed: ParsedInput,
    gateway: SessionGatewayProtocol,
) -> StepResult:
    if isinstance(parsed, EmptyInput):
        return StepResult(state=state)
    if isinstance(parsed, SlashCommand):
        return _apply_command(state, parsed, gateway)
    if isinstance(parsed, ChatMessage):
        return _apply_chat(state, parsed.text, gateway)
    raise TypeError("unsupported input: {0!r}".format(parsed))


def _apply_command(
    state: SessionState,
    command: SlashCommand,
    gateway: SessionGatewayProtocol,
) -> StepResult:
    spec = command.spec
    if spec is None:
        return StepResult(state=state, lines=[plain_line("Unknown command. Type /help for help.")])

    if not spec.accepts(command.args):
        return StepResult(state=state, lines=[plain_line("Usage: {0}".format(spec.usage))])

    if spec.action is CommandAction.QUIT:
        return StepResult(state=state, exit_reason=ExitReason.QUIT)

    if spec.action is CommandAction.HELP:
        return StepResult(state=state, lines=render_help_lines())

    if spec.action is CommandAction.LIST_SESSIONS:
        return _list_sessions(state, gateway)

    if spec.action is CommandAction.CONNECT:
        return _connect(state, command.args[0], gateway)

    raise ValueError("unhandled command action: {0}".format(spec.action))


def _list_sessions(state: SessionState, gateway: SessionGatewayProtocol) -> StepResult:
    try:
        sessions = gateway.list_sessions()
    except GatewayError as exc:
        return StepResult(state=state, lines=[error_line("Failed to list sessions: {0}".format(exc))])
    return StepResult(state=state, lines=render_session_lines(sessions))


def _connect(state: SessionState, session_ref: str, gateway: SessionGatewayProtocol) -> StepResult:
    try:
        gateway.get_session_details(session_ref)
    except GatewayError as exc:
        return StepResult(state=state, lines=[error_line("Failed to connect to session: {0}".format(exc))])
    return StepResult(
        state=InSession(session_ref),
        lines=[success_line("Connected to session {0}".format(session_ref))],
    )


def _apply_chat(state: SessionState, text: str, gateway: SessionGatewayProtocol) -> StepResult:
    if isinstance(state, InSession):
        try:
            reply = gateway.send_message(state.session_ref, text)
        except GatewayError as exc:
            return StepResult(state=state, lines=[error_line("Failed to send message: {0}".format(exc))])
        return StepResult(state=state, lines=[reply_line(reply.message)])

    try:
        new_ref = gateway.create_session(text)
    except GatewayError as exc:
        return StepResult(state=state, lines=[error_line("Failed to create session: {0}".format(exc))])

    # The session exists remotely from here on; a failed first read keeps it.
    next_state = InSession(new_ref)
    lines = [success_line("Created new session: {0}".format(new_ref))]
    try:
        reply = gateway.send_message(new_ref, "")
    except GatewayError as exc:
        lines.append(error_line("Failed to get response: {0}".format(exc)))
        return StepResult(state=next_state, lines=lines)

    lines.append(reply_line(reply.message))
    return StepResult(state=next_state, lines=lines)
