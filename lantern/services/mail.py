"""
Outgoing mail.

Drivers:
- 'smtp': plain SMTP with optional STARTTLS / SSL
- 'sendgrid': SendGrid HTTP API (port 443)
- 'log': nothing leaves the process, messages are kept in ``outbox`` and logged
"""

import re
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import requests

from ..common.exceptions import ConfigurationError, MailError

MAIL_DRIVERS = ('smtp', 'sendgrid', 'log')


class MailService:

    def __init__(self, config, logger):
        self.config = config
        self.logger = logger
        self.driver = (config.get('MAIL_DRIVER') or 'log').lower()
        self.outbox = []

        if self.driver not in MAIL_DRIVERS:
            raise ConfigurationError(f"unknown mail driver '{self.driver}'", {'driver': self.driver})

    def send(self, message: dict) -> None:
        """
        Sends ``{to, subject, html | text, from?}``.

        ``to`` may be a single address or a list; ``from`` defaults to MAIL_FROM.
        """
        recipients = message['to'] if isinstance(message['to'], (list, tuple)) else [message['to']]
        from_addr = message.get('from') or self.config.get('MAIL_FROM')
        if not from_addr:
            raise ConfigurationError('MAIL_FROM is not configured')

        envelope = {
            'from': from_addr,
            'to': list(recipients),
            'subject': message.get('subject', ''),
            'html': message.get('html'),
            'text': message.get('text'),
        }

        if self.driver == 'log':
            self.outbox.append(envelope)
            self.logger.info(f"mail '{envelope['subject']}' queued for {', '.join(envelope['to'])}")
            return

        try:
            if self.driver == 'sendgrid':
                self._send_sendgrid(envelope)
            else:
                self._send_smtp(envelope)
        except (smtplib.SMTPException, OSError, requests.RequestException, RuntimeError) as e:
            self.logger.error(f"mail delivery via {self.driver} failed", e)
            raise MailError(self.driver, e) from e

        self.logger.info(f"mail '{envelope['subject']}' sent to {', '.join(envelope['to'])}")

    def _send_smtp(self, envelope):
        cfg = self.config
        host = cfg.get('SMTP_HOST')
        if not host:
            raise ConfigurationError('SMTP_HOST is not configured')
        port = int(cfg.get('SMTP_PORT', 587))
        user = cfg.get('SMTP_USER')
        password = cfg.get('SMTP_PASSWORD')

        msg = MIMEMultipart('alternative')
        msg['Subject'] = envelope['subject']
        msg['From'] = envelope['from']
        msg['To'] = ", ".join(envelope['to'])
        if envelope['text']:
            msg.attach(MIMEText(envelope['text'], 'plain'))
        if envelope['html']:
            msg.attach(MIMEText(envelope['html'], 'html'))

        use_ssl = cfg.get('SMTP_USE_SSL', False)
        if use_ssl:
            connection = smtplib.SMTP_SSL(host, port, context=ssl.create_default_context(), timeout=10)
        else:
            connection = smtplib.SMTP(host, port, timeout=10)

        with connection as server:
            if not use_ssl and cfg.get('SMTP_USE_TLS', True):
                server.starttls()
            if user and password:
                server.login(user, password)
            server.sendmail(envelope['from'], envelope['to'], msg.as_string())

    def _send_sendgrid(self, envelope):
        api_key = self.config.get('SENDGRID_API_KEY')
        if not api_key:
            raise ConfigurationError('SENDGRID_API_KEY is not configured')

        content = []
        if envelope['text']:
            content.append({"type": "text/plain", "value": envelope['text']})
        elif envelope['html']:
            content.append({"type": "text/plain", "value": re.sub(r"<[^>]+>", "", envelope['html'])})
        if envelope['html']:
            content.append({"type": "text/html", "value": envelope['html']})

        payload = {
            "from": {"email": envelope['from']},
            "personalizations": [{
                "to": [{"email": r} for r in envelope['to']],
                "subject": envelope['subject'],
            }],
            "content": content or [{"type": "text/plain", "value": envelope['subject']}],
        }

        base = self.config.get('SENDGRID_ENDPOINT', 'https://api.sendgrid.com')
        resp = requests.post(
            f"{base.rstrip('/')}/v3/mail/send",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            json=payload,
            timeout=10,
        )
        if resp.status_code != 202:
            raise RuntimeError(f"SendGrid responded {resp.status_code}: {resp.text}")
