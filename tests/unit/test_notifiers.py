"""
Unit tests for notifier adapters.

Tests verify the console notifier logs verification artifacts in the
expected format and the SMTP notifier builds and sends messages.
"""

import logging
from unittest.mock import MagicMock, patch

import pytest

from src.adapters.smtp.console import ConsoleNotifier
from src.adapters.smtp.mailer import CODE_SUBJECT, LINK_SUBJECT, SmtpNotifier


class TestConsoleNotifierProtocol:
    """Tests for Notifier protocol compliance."""

    def test_implements_notifier_protocol(self) -> None:
        """ConsoleNotifier has both delivery methods."""
        notifier = ConsoleNotifier()
        assert callable(notifier.send_link)
        assert callable(notifier.send_code)

    def test_no_explicit_inheritance(self) -> None:
        """ConsoleNotifier uses structural subtyping, not inheritance."""
        assert ConsoleNotifier.__bases__ == (object,)


class TestConsoleNotifier:
    """Tests for console output."""

    def test_send_code_format(self, caplog: pytest.LogCaptureFixture) -> None:
        """Log format: [VERIFICATION] Email: ... Code: ..."""
        with caplog.at_level(logging.INFO):
            ConsoleNotifier().send_code("user@example.com", "567890")

        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == logging.INFO
        assert "[VERIFICATION]" in caplog.text
        assert "Email: user@example.com" in caplog.text
        assert "Code: 567890" in caplog.text

    def test_send_link_includes_url(self, caplog: pytest.LogCaptureFixture) -> None:
        """Link log contains the full verification URL."""
        notifier = ConsoleNotifier("https://auth.example.com/v1/auth/verify")

        with caplog.at_level(logging.INFO):
            notifier.send_link("user@example.com", "abc123")

        assert "Link: https://auth.example.com/v1/auth/verify?token=abc123" in caplog.text

    def test_returns_none(self) -> None:
        """Fire-and-forget."""
        assert ConsoleNotifier().send_code("user@example.com", "123456") is None


@pytest.fixture
def smtp_notifier() -> SmtpNotifier:
    return SmtpNotifier(
        host="smtp.example.com",
        port=587,
        sender="no-reply@example.com",
        verification_base_url="https://auth.example.com/v1/auth/verify",
        username="mailer",
        password="secret",
    )


class TestSmtpNotifier:
    """Tests for SmtpNotifier with smtplib mocked out."""

    def test_send_link_message(self, smtp_notifier: SmtpNotifier) -> None:
        """Link email carries the URL and the expiry hint."""
        with patch("src.adapters.smtp.mailer.smtplib.SMTP") as smtp_cls:
            smtp = MagicMock()
            smtp_cls.return_value.__enter__.return_value = smtp

            smtp_notifier.send_link("user@example.com", "abc123")

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("mailer", "secret")
        message = smtp.send_message.call_args[0][0]
        assert message["To"] == "user@example.com"
        assert message["From"] == "no-reply@example.com"
        assert message["Subject"] == LINK_SUBJECT
        body = message.get_content()
        assert "https://auth.example.com/v1/auth/verify?token=abc123" in body
        assert "24 hours" in body

    def test_send_code_message(self, smtp_notifier: SmtpNotifier) -> None:
        """Code email carries the code and the expiry hint."""
        with patch("src.adapters.smtp.mailer.smtplib.SMTP") as smtp_cls:
            smtp = MagicMock()
            smtp_cls.return_value.__enter__.return_value = smtp

            smtp_notifier.send_code("user@example.com", "004271")

        message = smtp.send_message.call_args[0][0]
        assert message["Subject"] == CODE_SUBJECT
        assert "004271" in message.get_content()
        assert "10 minutes" in message.get_content()

    def test_no_tls_no_login(self) -> None:
        """Plain relay without credentials skips STARTTLS and login."""
        notifier = SmtpNotifier(
            host="localhost",
            port=25,
            sender="no-reply@localhost",
            verification_base_url="http://localhost/verify",
            use_tls=False,
        )
        with patch("src.adapters.smtp.mailer.smtplib.SMTP") as smtp_cls:
            smtp = MagicMock()
            smtp_cls.return_value.__enter__.return_value = smtp

            notifier.send_code("user@example.com", "123456")

        smtp.starttls.assert_not_called()
        smtp.login.assert_not_called()
        smtp.send_message.assert_called_once()

    def test_delivery_errors_propagate(self, smtp_notifier: SmtpNotifier) -> None:
        """SMTP errors reach the caller so the domain can report them."""
        with patch("src.adapters.smtp.mailer.smtplib.SMTP") as smtp_cls:
            smtp_cls.side_effect = ConnectionRefusedError()

            with pytest.raises(ConnectionRefusedError):
                smtp_notifier.send_link("user@example.com", "abc123")
