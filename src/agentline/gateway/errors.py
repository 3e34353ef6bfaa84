"""Gateway exception taxonomy shared by the HTTP client and the controller."""

from __future__ import annotations

from typing import Any, Dict


class GatewayError(RuntimeError):
    """Raised when a remote session operation fails."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self._details: Dict[str, Any] = {}
        for key, value in details.items():
            if value is None:
                continue
            self._details[str(key)] = value

    @property
    def details(self) -> Dict[str, Any]:
        return dict(self._details)


class GatewayConnectionError(GatewayError):
    """Raised when the API cannot be reached (DNS, refused, timeout, TLS)."""


class GatewayRequestError(GatewayError):
    """Raised when the API answers with a non-success status."""

    @property
    def status_code(self) -> int:
        return int(self._details.get("status_code") or 0)


class GatewayParseError(GatewayError):
    """Raised when the API response body is malformed."""


def gateway_error_summary(exc: GatewayError) -> str:
    detail = exc.details if isinstance(exc, GatewayError) else {}
    ordered_keys = ("method", "path", "status_code")
    segments = [str(exc)]
    for key in ordered_keys:
        value = detail.get(key)
        if value in ("", None):
            continue
        segments.append("{0}={1}".format(key, value))
    return " | ".join(segments)
