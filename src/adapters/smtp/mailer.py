"""
SMTP notifier adapter - Implements Notifier protocol.

Sends plain-text verification emails through an SMTP relay. Delivery
errors propagate to the domain, which reports them as NotificationFailed
without discarding the persisted token.
"""

import logging
import smtplib
from email.message import EmailMessage

logger = logging.getLogger(__name__)

LINK_SUBJECT = "Email Verification"
CODE_SUBJECT = "Your Verification Code"


class SmtpNotifier:
    """
    Implements Notifier protocol via smtplib.

    A new SMTP connection is opened per message; verification mail volume
    is low and this keeps the adapter free of shared connection state.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        verification_base_url: str,
        link_expiry_hours: int = 24,
        code_expiry_minutes: int = 10,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._base_url = verification_base_url
        self._link_expiry_hours = link_expiry_hours
        self._code_expiry_minutes = code_expiry_minutes
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def send_link(self, email: str, token_id: str) -> None:
        url = f"{self._base_url}?token={token_id}"
        body = (
            "Please verify your email by clicking the link below:\n\n"
            f"{url}\n\n"
            f"This link will expire in {self._link_expiry_hours} hours.\n\n"
            "If you did not register for this account, please ignore this email."
        )
        self._send(email, LINK_SUBJECT, body)

    def send_code(self, email: str, code: str) -> None:
        body = (
            f"Your verification code is: {code}\n\n"
            f"This code will expire in {self._code_expiry_minutes} minutes.\n\n"
            "If you did not request this code, please ignore this email."
        )
        self._send(email, CODE_SUBJECT, body)

    def build_message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)
        return message

    def _send(self, recipient: str, subject: str, body: str) -> None:
        message = self.build_message(recipient, subject, body)
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            if self._use_tls:
                smtp.starttls()
            if self._username:
                smtp.login(self._username, self._password or "")
            smtp.send_message(message)
        logger.info("Sent '%s' email to %s", subject, recipient)
