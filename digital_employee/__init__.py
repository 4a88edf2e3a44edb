"""
Digital Employee: email-driven task router.

A small mailbox automation service that:
- Watches an IMAP folder for unseen messages with a fixed subject prefix
- Matches each request against a catalog of supported actions
- Runs the matched action (statement analysis, loan/support intake, ...)
- Replies to the sender over SMTP
"""

__version__ = "1.0.0"
