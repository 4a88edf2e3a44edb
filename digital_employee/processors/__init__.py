"""Email processing pipeline: mailbox poller and dispatch coordinator."""

from .dispatcher import DispatchCoordinator
from .poller import MailboxPoller

__all__ = ["DispatchCoordinator", "MailboxPoller"]
