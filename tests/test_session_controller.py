from __future__ import annotations

import pytest

from agentline.gateway.errors import (
    GatewayConnectionError,
    GatewayParseError,
    GatewayRequestError,
)
from agentline.repl_commands import parse_input
from agentline.session_controller import (
    ExitReason,
    InSession,
    NoSession,
    StartupConnectError,
    apply_input,
    connect_at_startup,
)
from fakes import summary


def _step(state, line, gateway):
    return apply_input(state, parse_input(line), gateway)


def _texts(result):
    return [line.formatted for line in result.lines]


def test_new_session_creates_then_fetches_first_reply(gateway):
    gateway.created.append("S1")
    gateway.replies.append("hi there")

    result = _step(NoSession(), "hello", gateway)

    assert result.state == InSession("S1")
    assert _texts(result) == ["✓ Created new session: S1", "hi there"]
    assert gateway.calls == [
        ("create_session", ("hello",)),
        ("send_message", ("S1", "")),
    ]


def test_failed_first_read_keeps_created_session(gateway):
    gateway.created.append("S1")
    gateway.replies.append(GatewayConnectionError("Failed to connect to API: boom"))

    result = _step(NoSession(), "hello", gateway)

    assert result.state == InSession("S1")
    errors = [line for line in result.lines if line.level == "error"]
    assert len(errors) == 1
    assert errors[0].formatted.startswith("✗ Failed to get response:")


def test_failed_create_stays_without_session(gateway):
    gateway.created.append(GatewayRequestError("API request failed: API returned status: 500", status_code=500))

    result = _step(NoSession(), "hello", gateway)

    assert result.state == NoSession()
    assert _texts(result) == ["✗ Failed to create session: API request failed: API returned status: 500"]
    assert [name for name, _ in gateway.calls] == ["create_session"]


def test_chat_in_session_sends_text(gateway):
    gateway.replies.append("done that")

    result = _step(InSession("S1"), "  please continue ", gateway)

    assert result.state == InSession("S1")
    assert _texts(result) == ["done that"]
    assert gateway.calls == [("send_message", ("S1", "please continue"))]


def test_chat_in_session_failure_keeps_state(gateway):
    gateway.replies.append(GatewayParseError("Failed to parse API response: bad json"))

    result = _step(InSession("S1"), "next", gateway)

    assert result.state == InSession("S1")
    assert _texts(result) == ["✗ Failed to send message: Failed to parse API response: bad json"]


@pytest.mark.parametrize("state", [NoSession(), InSession("S0")])
def test_connect_success_switches_session(gateway, state):
    gateway.details["S2"] = summary("S2")

    result = _step(state, "/connect S2", gateway)

    assert result.state == InSession("S2")
    assert _texts(result) == ["✓ Connected to session S2"]


def test_connect_failure_keeps_previous_session(gateway):
    gateway.details["S2"] = GatewayConnectionError("Failed to connect to API: refused")

    result = _step(InSession("S1"), "/connect S2", gateway)

    assert result.state == InSession("S1")
    assert len(result.lines) == 1
    assert result.lines[0].level == "error"


@pytest.mark.parametrize("line", ["/connect", "/connect a b"])
def test_connect_with_wrong_arity_prints_usage(gateway, line):
    result = _step(NoSession(), line, gateway)

    assert result.state == NoSession()
    assert _texts(result) == ["Usage: /connect <session_id>"]
    assert gateway.calls == []


@pytest.mark.parametrize(
    ("line", "usage"),
    [("/quit now", "/quit"), ("/help me", "/help"), ("/sessions all", "/sessions")],
)
def test_zero_arity_commands_reject_extra_arguments(gateway, line, usage):
    result = _step(InSession("S1"), line, gateway)

    assert result.state == InSession("S1")
    assert result.exit_requested is False
    assert _texts(result) == ["Usage: {0}".format(usage)]
    assert gateway.calls == []


@pytest.mark.parametrize("state", [NoSession(), InSession("S1")])
def test_sessions_never_changes_state(gateway, state):
    gateway.listings.append([summary("S1"), summary("S2", status="finished")])
    gateway.listings.append(GatewayConnectionError("Failed to connect to API: down"))

    listed = _step(state, "/sessions", gateway)
    failed = _step(state, "/sessions", gateway)

    assert listed.state == state
    assert failed.state == state
    assert _texts(listed)[0] == "Available sessions:"
    assert any("S2 [finished]" in text for text in _texts(listed))
    assert _texts(failed) == ["✗ Failed to list sessions: Failed to connect to API: down"]


def test_sessions_with_empty_listing(gateway):
    gateway.listings.append([])

    result = _step(NoSession(), "/sessions", gateway)

    assert _texts(result) == ["No sessions found."]


def test_unknown_command_points_to_help(gateway):
    result = _step(InSession("S1"), "/frobnicate", gateway)

    assert result.state == InSession("S1")
    assert _texts(result) == ["Unknown command. Type /help for help."]
    assert gateway.calls == []


def test_help_lists_every_command(gateway):
    result = _step(NoSession(), "/help", gateway)

    output = "\n".join(_texts(result))
    for usage in ("/quit", "/help", "/sessions", "/connect <session_id>"):
        assert usage in output
    assert gateway.calls == []


@pytest.mark.parametrize("state", [NoSession(), InSession("S1")])
def test_quit_requests_exit_without_gateway_calls(gateway, state):
    result = _step(state, "/quit", gateway)

    assert result.exit_reason is ExitReason.QUIT
    assert result.exit_requested is True
    assert result.state == state
    assert gateway.calls == []


def test_blank_line_is_a_no_op(gateway):
    result = _step(InSession("S1"), "   ", gateway)

    assert result.state == InSession("S1")
    assert result.lines == []
    assert result.exit_requested is False


def test_connect_at_startup_success(gateway):
    gateway.details["S9"] = summary("S9")

    assert connect_at_startup(gateway, "S9") == InSession("S9")


def test_connect_at_startup_failure_raises(gateway):
    gateway.details["S9"] = GatewayRequestError("API request failed: API returned status: 404", status_code=404)

    with pytest.raises(StartupConnectError) as excinfo:
        connect_at_startup(gateway, "S9")

    assert excinfo.value.session_ref == "S9"
    assert isinstance(excinfo.value.cause, GatewayRequestError)


def test_in_session_requires_reference():
    with pytest.raises(ValueError):
        InSession("")
