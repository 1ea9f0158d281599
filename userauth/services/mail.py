"""
Outbound e-mail for verification codes.

Delivery is best-effort: the caller does not wait on, or depend on, the
message arriving.
"""

import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Mapping, Optional

from .. import logging

logger = logging.getLogger(__name__)

SUBJECT = 'Verify your account'
BODY = 'Your verification code is: {code}'


class MailSession(object):
    """Sends messages through an SMTP service."""

    def __init__(self, host: str, port: int = 587, use_starttls: bool = True,
                 username: Optional[str] = None,
                 password: Optional[str] = None, timeout: int = 10) -> None:
        self._host = host
        self._port = port
        self._use_starttls = use_starttls
        self._username = username
        self._password = password
        self._timeout = timeout

    def send_message(self, message: EmailMessage) -> None:
        """Open a connection, send ``message`` and close the connection."""
        with smtplib.SMTP(host=self._host, port=self._port,
                          timeout=self._timeout) as conn:
            if self._use_starttls:
                conn.starttls()
            if self._username:
                conn.login(self._username, self._password or '')
            conn.send_message(message)


class EmailNotifier(object):
    """Composes and sends verification e-mails."""

    def __init__(self, mailer: Optional[MailSession],
                 sender: str = 'userauth <noreply@localhost>') -> None:
        self.mailer = mailer
        self.sender = sender

    def send(self, recipient: str, verification_code: str,
             username: Optional[str] = None) -> None:
        """
        Send a verification code to ``recipient``.

        Raises whatever the SMTP client raises; callers treat a failure here
        as non-fatal.
        """
        if self.mailer is None:
            logger.warning('Mail is not configured; verification e-mail to'
                           ' user %s not sent', username)
            return
        message = EmailMessage()
        message['Subject'] = SUBJECT
        message['From'] = self.sender
        message['To'] = formataddr((username, recipient)) if username \
            else recipient
        message.set_content(BODY.format(code=verification_code))
        self.mailer.send_message(message)
        logger.debug('Sent verification e-mail to user %s', username)


def init_app(app: Any) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('SMTP_HOST', None)
    app.config.setdefault('SMTP_PORT', '587')
    app.config.setdefault('SMTP_USE_STARTTLS', True)
    app.config.setdefault('SMTP_TIMEOUT', '10')
    app.config.setdefault('VERIFICATION_EMAIL_SENDER',
                          'userauth <noreply@localhost>')


def get_notifier(config: Mapping) -> EmailNotifier:
    """Get an :class:`.EmailNotifier` for the configured SMTP service."""
    sender = config.get('VERIFICATION_EMAIL_SENDER',
                        'userauth <noreply@localhost>')
    host = config.get('SMTP_HOST')
    if not host:
        return EmailNotifier(None, sender)
    mailer = MailSession(
        host=host,
        port=int(config.get('SMTP_PORT', '587')),
        use_starttls=bool(config.get('SMTP_USE_STARTTLS', True)),
        username=config.get('SMTP_USERNAME'),
        password=config.get('SMTP_PASSWORD'),
        timeout=int(config.get('SMTP_TIMEOUT', '10'))
    )
    return EmailNotifier(mailer, sender)
