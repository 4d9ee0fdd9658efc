"""
Console notifier adapter - Implements Notifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging verification links and codes for demo purposes.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """
    Implements Notifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints verification artifacts to stdout.
    """

    def __init__(self, verification_base_url: str = "http://localhost:8000/v1/auth/verify") -> None:
        self._base_url = verification_base_url

    def send_link(self, email: str, token_id: str) -> None:
        """
        Log verification link to console (simulates email delivery).

        The link is logged at INFO level to be visible in docker-compose logs.
        """
        logger.info("[VERIFICATION] Email: %s Link: %s?token=%s", email, self._base_url, token_id)

    def send_code(self, email: str, code: str) -> None:
        """Log verification code to console (simulates email delivery)."""
        logger.info("[VERIFICATION] Email: %s Code: %s", email, code)
