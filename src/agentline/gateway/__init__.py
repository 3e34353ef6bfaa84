"""Remote session gateway package."""

from .client import SessionGateway
from .errors import (
    GatewayConnectionError,
    GatewayError,
    GatewayParseError,
    GatewayRequestError,
    gateway_error_summary,
)
from .models import MessageReply, SessionSummary

__all__ = [
    "GatewayConnectionError",
    "GatewayError",
    "GatewayParseError",
    "GatewayRequestError",
    "MessageReply",
    "SessionGateway",
    "SessionSummary",
    "gateway_error_summary",
]
