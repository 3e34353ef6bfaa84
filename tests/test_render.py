from __future__ import annotations

from io import StringIO

from agentline.ui.render import (
    error_line,
    info_line,
    plain_line,
    render_prompt,
    reply_line,
    success_line,
    write_lines,
)


def _lines():
    return [
        success_line("Connected to session S1"),
        error_line("Failed to send message: boom"),
        info_line("No sessions found."),
        reply_line("hi there"),
    ]


def test_terminal_output_is_coloured_and_marked(monkeypatch):
    monkeypatch.delenv("NO_COLOR", raising=False)
    out = StringIO()

    write_lines(_lines(), out, is_tty=True)

    output = out.getvalue()
    assert "\x1b[32m✓ Connected to session S1" in output
    assert "\x1b[31m✗ Failed to send message: boom" in output
    assert "\x1b[36mNo sessions found." in output
    assert "hi there" in output


def test_plain_output_has_markers_without_escape_codes():
    out = StringIO()

    write_lines(_lines() + [plain_line("")], out)

    assert out.getvalue() == (
        "✓ Connected to session S1\n"
        "✗ Failed to send message: boom\n"
        "No sessions found.\n"
        "hi there\n"
        "\n"
    )


def test_prompt_shows_current_session():
    assert render_prompt(None) == "> "
    assert render_prompt("S1") == "[S1] > "
