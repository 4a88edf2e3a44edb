"""
IMAP client for the monitored mailbox.
"""

import imaplib
import threading
import time
from datetime import date
from email import message_from_bytes
from email.header import decode_header as email_decode_header
from email.message import Message
from email.utils import parsedate_to_datetime

from digital_employee.core.exceptions import MailboxError, MessageParseError
from digital_employee.core.logging import get_logger
from digital_employee.core.models import Attachment, IncomingMessage

log = get_logger(__name__)

# Untagged responses that announce new mail while idling
PUSH_RESPONSES = {"EXISTS", "RECENT"}


def imap_date(value: date) -> str:
    """Format a date the way IMAP SEARCH expects it (DD-Mon-YYYY)."""
    return value.strftime("%d-%b-%Y")


class IMAPClient:
    """Blocking IMAP session wrapper. One instance per connection."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        use_tls: bool = True,
        poll_interval: float = 60.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.poll_interval = poll_interval
        self._conn: imaplib.IMAP4 | None = None
        self._next_poll = 0.0
        self._wake = threading.Event()
        self._idling = False

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def connect(self) -> None:
        """Connect and authenticate to IMAP server."""
        log.info("imap_connecting", host=self.host, port=self.port, user=self.user)
        self._wake.clear()
        conn = None
        try:
            if self.use_tls:
                conn = imaplib.IMAP4_SSL(self.host, self.port)
            else:
                conn = imaplib.IMAP4(self.host, self.port)
            conn.login(self.user, self.password)
            self._conn = conn  # Only set if login succeeds
            log.info("imap_connected")
        except (imaplib.IMAP4.error, OSError) as e:
            # Clean up partial connection if login fails
            if conn:
                try:
                    conn.logout()
                except (imaplib.IMAP4.error, OSError):
                    pass
            raise MailboxError(f"IMAP connection failed: {e}") from e

    def disconnect(self) -> None:
        """Close IMAP connection."""
        if self._conn:
            try:
                self._conn.logout()
            except (imaplib.IMAP4.error, OSError) as e:
                log.debug("imap_logout_error", error=str(e))
            self._conn = None
            log.info("imap_disconnected")

    def wake(self, drop_idle: bool = True) -> None:
        """
        End a pending wait_for_push early. Safe to call from another thread.

        A polling wait returns and the session stays usable, and later waits
        return straight away until the next connect(). An IDLE in progress
        can only be ended by dropping the socket; with drop_idle=False it is
        left to run out its duration instead.
        """
        self._wake.set()
        if self._idling and drop_idle:
            log.info("imap_idle_interrupted")
            self.interrupt()

    def interrupt(self) -> None:
        """Drop the socket so a blocked IDLE wait returns immediately."""
        self._wake.set()
        if self._conn:
            try:
                self._conn.shutdown()
            except OSError as e:
                log.debug("imap_shutdown_error", error=str(e))
            self._conn = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def _require_conn(self) -> imaplib.IMAP4:
        if not self._conn:
            raise MailboxError("Not connected to IMAP server")
        return self._conn

    def select_folder(self, folder: str = "INBOX") -> int:
        """
        Open a folder read-write.

        Returns:
            Number of messages in the folder
        """
        conn = self._require_conn()
        typ, data = conn.select(folder)
        if typ != "OK":
            raise MailboxError(f"Failed to open folder {folder}: {data!r}")
        total = int(data[0]) if data and data[0] else 0
        log.info("imap_folder_opened", folder=folder, total=total)
        return total

    def search_unseen(self, since: date | None = None) -> list[str]:
        """
        Find unseen messages, optionally received on/after a date.

        Returns:
            Message UIDs as strings
        """
        conn = self._require_conn()
        criteria = ["UNSEEN"]
        if since:
            criteria += ["SINCE", imap_date(since)]

        typ, data = conn.uid("SEARCH", *criteria)
        if typ != "OK":
            raise MailboxError(f"IMAP search failed: {data!r}")

        uids = [uid.decode() for uid in (data[0] or b"").split()]
        log.info("imap_unseen_found", count=len(uids), criteria=" ".join(criteria))
        return uids

    def fetch_message(self, uid: str) -> IncomingMessage | None:
        """
        Fetch and parse a single message without setting \\Seen.

        Returns:
            Parsed message, or None if the server returned nothing
        """
        conn = self._require_conn()
        typ, data = conn.uid("FETCH", uid, "(BODY.PEEK[])")
        if typ != "OK":
            raise MailboxError(f"IMAP fetch failed for UID {uid}: {data!r}")

        raw = next(
            (part[1] for part in data or [] if isinstance(part, tuple) and len(part) > 1),
            None,
        )
        if not raw:
            log.warning("imap_fetch_empty", uid=uid)
            return None

        try:
            return self._parse_message(message_from_bytes(raw), uid)
        except (ValueError, LookupError, TypeError) as e:
            raise MessageParseError(f"Could not parse message UID {uid}: {e}") from e

    def mark_seen(self, uid: str) -> bool:
        """Set the \\Seen flag on a message."""
        conn = self._require_conn()
        typ, data = conn.uid("STORE", uid, "+FLAGS", "(\\Seen)")
        if typ != "OK":
            log.error("imap_mark_seen_failed", uid=uid, response=repr(data))
            return False
        log.info("imap_marked_seen", uid=uid)
        return True

    @property
    def supports_idle(self) -> bool:
        """True when both the server and this imaplib can IDLE."""
        conn = self._require_conn()
        return hasattr(conn, "idle") and "IDLE" in conn.capabilities

    def wait_for_push(self, timeout: float) -> bool:
        """
        Block until the server announces new mail or the timeout expires.

        Falls back to fixed-interval polling when IDLE is unavailable.
        Returns False straight away once wake() has been called.

        Returns:
            True if a sweep should run now
        """
        conn = self._require_conn()

        if not self.supports_idle:
            now = time.monotonic()
            if not self._next_poll:
                self._next_poll = now + self.poll_interval
            if self._wake.wait(max(0.0, min(timeout, self._next_poll - now))):
                return False
            if time.monotonic() >= self._next_poll:
                self._next_poll = 0.0
                return True
            return False

        self._idling = True
        try:
            # Checked after raising the flag so a concurrent wake() is never missed
            if self._wake.is_set():
                return False
            with conn.idle(duration=timeout) as idler:
                for response, _ in idler:
                    if response in PUSH_RESPONSES:
                        log.info("imap_push_received", response=response)
                        return True
        finally:
            self._idling = False
        return False

    def _decode_header(self, header: str) -> str:
        """Decode MIME-encoded email header.

        Handles headers like '=?UTF-8?B?...?=' for non-ASCII text.
        """
        if not header:
            return ""
        decoded_parts = []
        for part, charset in email_decode_header(header):
            if isinstance(part, bytes):
                decoded_parts.append(part.decode(charset or "utf-8", errors="replace"))
            else:
                decoded_parts.append(part)
        return "".join(decoded_parts).replace("\r\n", "").replace("\n", "")

    def _parse_message(self, msg: Message, uid: str) -> IncomingMessage:
        """Parse an email.message.Message into an IncomingMessage."""
        received_at = None
        date_str = msg.get("Date")
        if date_str:
            try:
                received_at = parsedate_to_datetime(date_str)
            except (TypeError, ValueError):
                log.warning("imap_bad_date", uid=uid, date=date_str)

        body_plain, body_html = self._get_body(msg)

        attachments = []
        if msg.is_multipart():
            for part in msg.walk():
                disposition = part.get("Content-Disposition", "")
                if "attachment" in disposition:
                    attachments.append(Attachment(
                        filename=self._decode_header(part.get_filename() or "unnamed"),
                        content_type=part.get_content_type(),
                        content=part.get_payload(decode=True) or b"",
                    ))

        return IncomingMessage(
            uid=uid,
            message_id=(msg.get("Message-ID") or "").strip(),
            sender=self._decode_header(msg.get("From", "")),
            subject=self._decode_header(msg.get("Subject", "")),
            body_plain=body_plain,
            body_html=body_html,
            received_at=received_at,
            attachments=attachments,
        )

    def _get_body(self, msg: Message) -> tuple[str, str]:
        """Extract plain text and HTML body from message."""
        text_plain = ""
        text_html = ""

        parts = msg.walk() if msg.is_multipart() else [msg]
        for part in parts:
            if part.is_multipart():
                continue
            if "attachment" in part.get("Content-Disposition", ""):
                continue

            payload = part.get_payload(decode=True)
            if not payload:
                continue

            charset = part.get_content_charset() or "utf-8"
            try:
                text = payload.decode(charset, errors="replace")
            except LookupError:
                text = payload.decode("utf-8", errors="replace")

            content_type = part.get_content_type()
            if content_type == "text/plain":
                text_plain += text
            elif content_type == "text/html":
                text_html += text

        return text_plain, text_html
