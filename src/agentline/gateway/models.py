"""Wire payloads exchanged with the remote session API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


class PayloadShapeError(ValueError):
    """Raised when a decoded JSON payload lacks a required field."""


def _require_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise PayloadShapeError("missing field `{0}`".format(key))
    return value


def _optional_str(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise PayloadShapeError("field `{0}` must be a string".format(key))
    return value


@dataclass(frozen=True)
class CreateSessionResponse:
    session_id: str
    url: str = ""
    is_new_session: bool = True

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CreateSessionResponse":
        session_id = _require_str(payload, "session_id").strip()
        if not session_id:
            raise PayloadShapeError("field `session_id` is empty")
        return cls(
            session_id=session_id,
            url=_optional_str(payload, "url") or "",
            is_new_session=bool(payload.get("is_new_session", True)),
        )


@dataclass(frozen=True)
class MessageReply:
    message: str
    done: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MessageReply":
        return cls(
            message=_require_str(payload, "message"),
            done=bool(payload.get("done", False)),
        )


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    status: str
    created_at: str
    updated_at: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SessionSummary":
        return cls(
            session_id=_require_str(payload, "session_id"),
            status=_require_str(payload, "status"),
            created_at=_require_str(payload, "created_at"),
            updated_at=_optional_str(payload, "updated_at"),
        )
