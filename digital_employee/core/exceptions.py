"""
Exception types raised across the email pipeline.
"""


class CatalogError(ValueError):
    """A pattern catalog entry is malformed or points at an unknown action."""


class MailboxError(RuntimeError):
    """The IMAP session could not be established or was lost."""


class MessageParseError(ValueError):
    """A fetched message could not be parsed into an IncomingMessage."""


class AttachmentParseError(ValueError):
    """A statement attachment could not be decoded to text."""


class AnalysisError(RuntimeError):
    """The statement analysis service failed or returned unusable data."""
