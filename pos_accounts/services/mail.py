"""
Outbound transactional e-mail.

:class:`Mailer` is a thin wrapper around an SMTP connection, configured from
the application config. A fresh connection is opened for each message; the
volume of verification mail does not justify pooling.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from flask import Flask, current_app

from ..exceptions import MailDeliveryFailed

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'mailer'


class Mailer(object):
    """Sends HTML messages through an SMTP service."""

    def __init__(self, host: str = 'localhost', port: int = 25,
                 sender: str = '', username: Optional[str] = None,
                 password: Optional[str] = None, use_tls: bool = False,
                 suppress: bool = False) -> None:
        self._host = host
        self._port = port
        self.sender = sender
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._suppress = suppress

    def _new_connection(self) -> smtplib.SMTP:
        return smtplib.SMTP(host=self._host, port=self._port, timeout=10)

    def send(self, to: str, subject: str, html: str,
             sender: Optional[str] = None) -> None:
        """
        Send one message.

        Raises
        ------
        :class:`.MailDeliveryFailed`
            The SMTP service refused or could not be reached.

        """
        message = EmailMessage()
        message['From'] = sender or self.sender
        message['To'] = to
        message['Subject'] = subject
        message.set_content(html, subtype='html')

        if self._suppress:
            logger.info('Mail suppressed: %r to %s', subject, to)
            return

        try:
            with self._new_connection() as conn:
                if self._use_tls:
                    conn.starttls()
                if self._username:
                    conn.login(self._username, self._password or '')
                conn.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryFailed(f'Could not send to {to}: {e}') from e
        logger.debug('Sent %r to %s', subject, to)


def init_app(app: Flask, mailer: Optional[Mailer] = None) -> Mailer:
    """Build (or accept) the mailer for ``app`` and attach it."""
    config = app.config
    if mailer is None:
        mailer = Mailer(
            host=config.get('MAIL_HOST', 'localhost'),
            port=int(config.get('MAIL_PORT', 25)),
            sender=config.get('MAIL_FROM', ''),
            username=config.get('MAIL_USERNAME'),
            password=config.get('MAIL_PASSWORD'),
            use_tls=bool(config.get('MAIL_USE_TLS', False)),
            suppress=bool(config.get('MAIL_SUPPRESS_SEND', False))
        )
    app.extensions[EXTENSION_KEY] = mailer
    return mailer


def current_mailer() -> Mailer:
    """Get the :class:`.Mailer` of the current application."""
    mailer: Mailer = current_app.extensions[EXTENSION_KEY]
    return mailer
