"""Core modules for email processing."""

from .logging import configure_logging, get_logger
from .models import (
    Action,
    ActionResult,
    Attachment,
    IncomingMessage,
    MatchResult,
    OutboundMessage,
    PollerState,
)
from .dedup import ProcessedIdentities

__all__ = [
    "configure_logging",
    "get_logger",
    "Action",
    "ActionResult",
    "Attachment",
    "IncomingMessage",
    "MatchResult",
    "OutboundMessage",
    "PollerState",
    "ProcessedIdentities",
]
