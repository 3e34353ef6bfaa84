"""Slash command table and input classification for the interactive session."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union


class CommandAction(str, Enum):
    QUIT = "quit"
    HELP = "help"
    LIST_SESSIONS = "list_sessions"
    CONNECT = "connect"


@dataclass(frozen=True)
class CommandSpec:
    """Declarative slash command metadata used for dispatch and help text."""

    name: str
    action: CommandAction
    arity: int = 0
    usage: str = ""
    summary: str = ""

    def accepts(self, args: Tuple[str, ...]) -> bool:
        return len(args) == self.arity


@dataclass(frozen=True)
class EmptyInput:
    pass


@dataclass(frozen=True)
class SlashCommand:
    """A line starting with ``/``; ``spec`` is None for unknown commands."""

    name: str
    args: Tuple[str, ...] = field(default_factory=tuple)
    spec: Optional[CommandSpec] = None

    @property
    def known(self) -> bool:
        return self.spec is not None


@dataclass(frozen=True)
class ChatMessage:
    text: str


ParsedInput = Union[EmptyInput, SlashCommand, ChatMessage]

_COMMAND_SPECS: Tuple[CommandSpec, ...] = (
    CommandSpec(
        name="/quit",
        action=CommandAction.QUIT,
        usage="/quit",
        summary="Exit the session",
    ),
    CommandSpec(
        name="/help",
        action=CommandAction.HELP,
        usage="/help",
        summary="Show this help message",
    ),
    CommandSpec(
        name="/sessions",
        action=CommandAction.LIST_SESSIONS,
        usage="/sessions",
        summary="List all sessions",
    ),
    CommandSpec(
        name="/connect",
        action=CommandAction.CONNECT,
        arity=1,
        usage="/connect <session_id>",
        summary="Connect to an existing session",
    ),
)

COMMAND_TABLE: Mapping[str, CommandSpec] = MappingProxyType(
    {spec.name: spec for spec in _COMMAND_SPECS}
)


def command_specs() -> Tuple[CommandSpec, ...]:
    """Commands in help display order."""

    return _COMMAND_SPECS


def parse_input(line: str) -> ParsedInput:
    stripped = line.strip()
    if not stripped:
        return EmptyInput()

    if stripped.startswith("/"):
        tokens = stripped.split()
        name = tokens[0]
        return SlashCommand(
            name=name,
            args=tuple(tokens[1:]),
            spec=COMMAND_TABLE.get(name),
        )

    return ChatMessage(text=stripped)
