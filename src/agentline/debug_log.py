"""JSONL trace of gateway traffic with size-based rotation.

Two record shapes are written, one per HTTP exchange and one per failure::

    {"ts_ms", "level": "info", "kind": "request", "method", "path",
     "status_code", "elapsed_ms", "session_ref"}
    {"ts_ms", "level": "error", "kind": "failure", "method", "path",
     "status_code", "error_type", "error", "session_ref"}

Redaction modes: ``none`` writes records untouched, ``default`` scrubs
credentials out of error text, ``strict`` also hides session identifiers and
drops error text entirely.
"""

from __future__ import annotations

import json
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

ACTIVE_LOG_NAME = "debug.log.jsonl"
REDACTED = "***REDACTED***"

_CREDENTIAL_PATTERNS = (
    (re.compile(r"(?i)\b(bearer\s+)[^\s,;]+"), r"\g<1>" + REDACTED),
    (
        re.compile(r"(?i)\b((?:api[_-]?key|token|secret|authorization|cookie)\s*[:=]\s*)[^\s,;]+"),
        r"\g<1>" + REDACTED,
    ),
    (re.compile(r"\b(?:sk|apk)-[A-Za-z0-9_-]{8,}\b"), REDACTED),
)
_SESSION_SEGMENT_RE = re.compile(r"(/sessions/)[^/?#]+")


def now_ms() -> int:
    return int(time.time() * 1000)


def _redact_credentials(text: str) -> str:
    for pattern, replacement in _CREDENTIAL_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class DebugLogWriter:
    """Best-effort gateway trace; write failures are only counted.

    The count is reported through :meth:`status`, which ``agentline doctor``
    prints.
    """

    def __init__(
        self,
        *,
        logs_dir: Path,
        enabled: bool,
        max_file_bytes: int = 5 * 1024 * 1024,
        max_files: int = 3,
        redaction: str = "default",
    ) -> None:
        self._logs_dir = Path(logs_dir)
        self._enabled = bool(enabled)
        self._max_file_bytes = max(1, int(max_file_bytes or 0))
        self._max_files = max(1, int(max_files or 0))
        mode = str(redaction or "").strip().lower()
        self._redaction = mode if mode in {"none", "default", "strict"} else "default"
        self._write_errors = 0

    @property
    def active_log_file(self) -> Path:
        return self._logs_dir / ACTIVE_LOG_NAME

    def record_request(
        self,
        *,
        method: str,
        path: str,
        status_code: int,
        elapsed_ms: int,
        session_ref: Optional[str] = None,
    ) -> None:
        self._write(
            {
                "level": "info",
                "kind": "request",
                "method": method,
                "path": path,
                "status_code": int(status_code),
                "elapsed_ms": int(elapsed_ms),
                "session_ref": session_ref,
            }
        )

    def record_failure(
        self,
        *,
        method: str,
        path: str,
        error_type: str,
        error: str,
        status_code: Optional[int] = None,
        session_ref: Optional[str] = None,
    ) -> None:
        self._write(
            {
                "level": "error",
                "kind": "failure",
                "method": method,
                "path": path,
                "status_code": status_code,
                "error_type": error_type,
                "error": error,
                "session_ref": session_ref,
            }
        )

    def status(self) -> Dict[str, Any]:
        active = self.active_log_file
        existing = [path for path in self._log_chain() if path.exists()] if self._enabled else []
        sizes = {path: int(path.stat().st_size) for path in existing}
        return {
            "logs_enabled": self._enabled,
            "logs_dir": str(self._logs_dir),
            "logs_active_file": str(active),
            "logs_active_size_bytes": sizes.get(active, 0),
            "logs_max_file_bytes": self._max_file_bytes,
            "logs_max_files": self._max_files,
            "logs_total_size_bytes": sum(sizes.values()),
            "logs_rotated_files": [str(path) for path in existing if path != active],
            "logs_write_errors": self._write_errors,
        }

    def _write(self, record: Dict[str, Any]) -> None:
        if not self._enabled:
            return
        line = json.dumps(
            {"ts_ms": now_ms(), **self._scrub(record)},
            ensure_ascii=True,
            separators=(",", ":"),
        )
        try:
            self._append((line + "\n").encode("utf-8"))
        except OSError:
            self._write_errors += 1

    def _scrub(self, record: Dict[str, Any]) -> Dict[str, Any]:
        if self._redaction == "none":
            return record
        scrubbed = dict(record)
        if scrubbed.get("error"):
            scrubbed["error"] = _redact_credentials(str(scrubbed["error"]))
        if self._redaction == "strict":
            scrubbed["path"] = _SESSION_SEGMENT_RE.sub(r"\g<1>" + REDACTED, str(scrubbed["path"]))
            if scrubbed.get("session_ref"):
                scrubbed["session_ref"] = REDACTED
            if scrubbed.get("error"):
                scrubbed["error"] = REDACTED
        return scrubbed

    def _log_chain(self) -> List[Path]:
        """Active file first, then rotated generations from newest to oldest."""

        active = self.active_log_file
        return [active] + [Path("{0}.{1}".format(active, index)) for index in range(1, self._max_files + 1)]

    def _append(self, payload: bytes) -> None:
        self._logs_dir.mkdir(parents=True, exist_ok=True)
        active = self.active_log_file
        if active.exists() and active.stat().st_size + len(payload) > self._max_file_bytes:
            self._shift_generations()
        with active.open("ab") as fp:
            fp.write(payload)

    def _shift_generations(self) -> None:
        chain = self._log_chain()
        chain[-1].unlink(missing_ok=True)
        for newer, older in zip(reversed(chain[:-1]), reversed(chain[1:])):
            if newer.exists():
                newer.replace(older)
