"""Typer CLI entrypoints for agentline."""

from __future__ import annotations

import json
from typing import Optional

import typer

from agentline import __version__
from agentline.config import (
    ConfigError,
    CredentialNotConfiguredError,
    InvalidCredentialError,
    load_settings,
    mask_token,
    resolve_api_token,
    save_api_token,
)
from agentline.doctor import doctor_exit_code, run_doctor
from agentline.gateway.errors import GatewayError
from agentline.repl import build_debug_log, build_gateway, start_session
from agentline.ui.render import (
    render_doctor_text,
    render_missing_token_lines,
    render_notice,
    render_session_lines,
)

app = typer.Typer(
    invoke_without_command=True,
    no_args_is_help=False,
    help="Chat with a remote agent through persistent sessions.",
)


def _echo_lines(lines) -> None:
    for line in lines:
        typer.echo(line.formatted)


def _execute_session(session_ref: Optional[str], api_url: Optional[str]) -> int:
    return start_session(session_ref=session_ref, api_url=api_url)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo("agentline {0}".format(__version__))
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    if ctx.invoked_subcommand is not None:
        return
    raise typer.Exit(code=_execute_session(None, None))


@app.command("session")
def session_cmd(
    session_id: Optional[str] = typer.Option(
        None,
        "--session-id",
        "-s",
        help="Connect to an existing session instead of starting a new one.",
    ),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Override the API base URL."),
) -> None:
    """Start an interactive session with the agent."""

    raise typer.Exit(code=_execute_session(session_id, api_url))


@app.command("configure")
def configure_cmd(
    token: str = typer.Argument(..., help="The API token to use."),
) -> None:
    """Configure the API token."""

    if not token.strip():
        typer.echo(render_notice("error", "API token must not be empty"), err=True)
        raise typer.Exit(code=2)
    try:
        save_api_token(token)
    except InvalidCredentialError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=2)
    except ConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=1)
    typer.echo("API token configured successfully")


@app.command("show")
def show_cmd() -> None:
    """Show the configured API token (masked)."""

    try:
        token = resolve_api_token()
    except CredentialNotConfiguredError as exc:
        _echo_lines(render_missing_token_lines(exc))
        raise typer.Exit(code=1)
    except ConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=1)
    typer.echo("API Token: {0}".format(mask_token(token)))


@app.command("doctor")
def doctor_cmd(
    output_format: str = typer.Option(
        "text",
        "--format",
        help="Output format: text|json",
    ),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Override the API base URL."),
) -> None:
    """Check that the CLI is set up correctly and the API is reachable."""

    normalized_format = output_format.strip().lower()
    if normalized_format not in {"json", "text"}:
        typer.echo(render_notice("error", "Unsupported format: {0}".format(output_format)), err=True)
        raise typer.Exit(code=2)

    report = run_doctor(api_url=api_url)
    if normalized_format == "json":
        typer.echo(json.dumps(report, ensure_ascii=True, indent=2))
    else:
        typer.echo(render_doctor_text(report))
        if not report.get("token_configured"):
            typer.echo("")
            typer.echo("Run 'agentline configure <token>' to set up your API token.")
    raise typer.Exit(code=doctor_exit_code(report))


@app.command("sessions")
def sessions_cmd(
    limit: int = typer.Option(100, "--limit", min=1, help="Maximum number of sessions to list."),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Override the API base URL."),
) -> None:
    """List sessions without entering the interactive loop."""

    try:
        settings = load_settings(api_url=api_url)
    except CredentialNotConfiguredError as exc:
        _echo_lines(render_missing_token_lines(exc))
        raise typer.Exit(code=1)
    except ConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=1)

    gateway = build_gateway(settings, build_debug_log(settings))
    try:
        sessions = gateway.list_sessions(limit=limit)
    except GatewayError as exc:
        typer.echo(render_notice("error", "Failed to list sessions: {0}".format(exc)), err=True)
        raise typer.Exit(code=1)
    finally:
        gateway.close()
    _echo_lines(render_session_lines(sessions))


if __name__ == "__main__":
    app()
