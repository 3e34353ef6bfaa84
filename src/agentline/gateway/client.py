"""HTTP client for the remote session API."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from agentline.config import DEFAULT_API_TIMEOUT_SEC, DEFAULT_API_URL, DEFAULT_SESSION_LIST_LIMIT, mask_token
from agentline.debug_log import DebugLogWriter
from agentline.gateway.errors import (
    GatewayConnectionError,
    GatewayError,
    GatewayParseError,
    GatewayRequestError,
)
from agentline.gateway.models import (
    CreateSessionResponse,
    MessageReply,
    PayloadShapeError,
    SessionSummary,
)


class SessionGateway:
    """Synchronous client for the four session operations.

    Each call performs exactly one HTTP request; nothing is retried.
    """

    def __init__(
        self,
        api_token: str,
        api_url: str = DEFAULT_API_URL,
        *,
        timeout: float = DEFAULT_API_TIMEOUT_SEC,
        transport: Optional[httpx.BaseTransport] = None,
        debug_log: Optional[DebugLogWriter] = None,
    ) -> None:
        self._api_token = str(api_token or "")
        self._api_url = str(api_url or DEFAULT_API_URL).rstrip("/")
        self._debug_log = debug_log
        self._client = httpx.Client(
            base_url=self._api_url,
            headers={
                "Authorization": "Bearer {0}".format(self._api_token),
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def api_url(self) -> str:
        return self._api_url

    @property
    def masked_token(self) -> str:
        return mask_token(self._api_token)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "SessionGateway":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def check_connection(self) -> None:
        """Probe the API with a minimal authenticated request."""

        if not self._api_token:
            raise GatewayConnectionError("API token is empty")
        self.list_sessions(limit=1)

    def create_session(self, prompt: str) -> str:
        payload = self._request("POST", "/v1/sessions", json={"prompt": prompt})
        return self._decode(CreateSessionResponse.from_payload, payload).session_id

    def send_message(self, session_id: str, message: str) -> MessageReply:
        payload = self._request(
            "POST",
            "/v1/sessions/{0}/messages".format(quote(session_id, safe="")),
            json={"message": message},
            session_ref=session_id,
        )
        return self._decode(MessageReply.from_payload, payload)

    def list_sessions(self, limit: Optional[int] = None) -> List[SessionSummary]:
        resolved_limit = int(limit) if limit else DEFAULT_SESSION_LIST_LIMIT
        payload = self._request("GET", "/v1/sessions", params={"limit": resolved_limit})
        sessions = payload.get("sessions")
        if not isinstance(sessions, list):
            raise GatewayParseError("Failed to parse API response: missing field `sessions`")
        return [self._decode(SessionSummary.from_payload, item) for item in sessions]

    def get_session_details(self, session_id: str) -> SessionSummary:
        payload = self._request(
            "GET",
            "/v1/sessions/{0}".format(quote(session_id, safe="")),
            session_ref=session_id,
        )
        return self._decode(SessionSummary.from_payload, payload)

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        session_ref: Optional[str] = None,
    ) -> Dict[str, Any]:
        started = time.monotonic()
        try:
            response = self._client.request(method, path, json=json, params=params)
        except httpx.RequestError as exc:
            error = GatewayConnectionError(
                "Failed to connect to API: {0}".format(exc),
                method=method,
                path=path,
            )
            self._log_failure(error, session_ref)
            raise error from exc

        elapsed_ms = int((time.monotonic() - started) * 1000)
        if self._debug_log is not None:
            self._debug_log.record_request(
                method=method,
                path=path,
                status_code=response.status_code,
                elapsed_ms=elapsed_ms,
                session_ref=session_ref,
            )

        if not response.is_success:
            error = GatewayRequestError(
                "API request failed: API returned status: {0} {1}".format(
                    response.status_code,
                    response.reason_phrase,
                ).rstrip(),
                method=method,
                path=path,
                status_code=response.status_code,
            )
            self._log_failure(error, session_ref)
            raise error

        try:
            payload = response.json()
        except ValueError as exc:
            error = GatewayParseError(
                "Failed to parse API response: {0}".format(exc),
                method=method,
                path=path,
            )
            self._log_failure(error, session_ref)
            raise error from exc

        if not isinstance(payload, dict):
            error = GatewayParseError(
                "Failed to parse API response: expected a JSON object",
                method=method,
                path=path,
            )
            self._log_failure(error, session_ref)
            raise error
        return payload

    @staticmethod
    def _decode(factory, payload: object):
        if not isinstance(payload, dict):
            raise GatewayParseError("Failed to parse API response: expected a JSON object")
        try:
            return factory(payload)
        except PayloadShapeError as exc:
            raise GatewayParseError("Failed to parse API response: {0}".format(exc)) from exc

    def _log_failure(self, error: GatewayError, session_ref: Optional[str]) -> None:
        if self._debug_log is None:
            return
        details = error.details
        self._debug_log.record_failure(
            method=str(details.get("method") or ""),
            path=str(details.get("path") or ""),
            error_type=type(error).__name__,
            error=str(error),
            status_code=details.get("status_code"),
            session_ref=session_ref,
        )
