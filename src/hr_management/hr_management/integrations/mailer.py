from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from flask_mail import Mail, Message

from ..core.exceptions import DependencyFailure

logger = logging.getLogger(__name__)


class MailSender:
    """Flask-Mail backed e-mail delivery.

    Needs an application context (HTTP requests and ``flask`` CLI commands both have one).
    With ``enabled=False`` messages are only logged.
    """

    def __init__(self, mail: Mail, *, sender: Optional[Union[str, tuple]] = None, enabled: bool = True):
        self._mail = mail
        self._sender = sender
        self._enabled = enabled

    def send(self, recipients: Union[str, Sequence[str]], subject: str, html: str) -> bool:
        to = [recipients] if isinstance(recipients, str) else [r for r in recipients if r]
        if not to:
            return False

        if not self._enabled:
            logger.info("Mail disabled, skipping %r to %s", subject, ", ".join(to))
            return False

        try:
            msg = Message(subject=subject, recipients=to, sender=self._sender, html=html)
            with self._mail.connect() as conn:
                conn.send(msg)
        except Exception as e:
            logger.exception("Failed to send %r to %s", subject, ", ".join(to))
            raise DependencyFailure(f"SMTP send failed: {type(e).__name__}: {e}") from e

        logger.info("Mail %r sent to %s", subject, ", ".join(to))
        return True
