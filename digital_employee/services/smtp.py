"""
SMTP client for sending replies.
"""

import smtplib
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from digital_employee.core.logging import get_logger
from digital_employee.core.models import OutboundMessage

log = get_logger(__name__)


class SMTPSender:
    """Delivers composed replies through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        sender_address: str,
        sender_name: str = "Digital Employee",
        use_ssl: bool = False,
        timeout: float = 20.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender_address = sender_address
        self.sender_name = sender_name
        self.use_ssl = use_ssl
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls()
                server.ehlo()
        if self.user:
            server.login(self.user, self.password)
        return server

    def build(self, outbound: OutboundMessage) -> EmailMessage:
        """Build a MIME message with a plain-text part and optional HTML."""
        msg = EmailMessage()
        msg["From"] = formataddr((self.sender_name, self.sender_address))
        msg["To"] = outbound.to
        msg["Subject"] = outbound.subject
        msg["Message-ID"] = make_msgid()
        msg.set_content(outbound.text)
        if outbound.html:
            msg.add_alternative(outbound.html, subtype="html")
        return msg

    def send(self, outbound: OutboundMessage) -> bool:
        """
        Send a reply.

        Returns:
            True on success, False if the relay rejected or was unreachable
        """
        log.info("reply_sending", to=outbound.to, subject=outbound.subject)
        try:
            msg = self.build(outbound)
            with self._connect() as server:
                server.send_message(msg)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            log.error("reply_send_failed", to=outbound.to, error=str(e))
            return False

        log.info("reply_sent", to=outbound.to, message_id=msg["Message-ID"])
        return True
