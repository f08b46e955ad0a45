"""
core/mailer.py -- Outbound mail collaborator.

Sends the two transactional mails the auth flows need: signup confirmation
and password-reset link. Built once in the lifespan from Settings and stored
on app.state.mailer, so no module holds a global SMTP transport.

When SMTP_HOST is empty (local dev, tests) the message is NOT sent; a single
log line with the redacted recipient is written instead. The reset URL is
never logged because it carries a live credential.

Delivery failures are logged and swallowed: routes schedule these calls as
background tasks after the response has been decided, so there is no caller
left to report to.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage

from core.config import Settings

logger = logging.getLogger("inkwell.mail")


def _redact(email: str) -> str:
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class Mailer:
    def __init__(
        self,
        *,
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        smtp_use_tls: bool = True,
        mail_from: str = "no-reply@inkwell.local",
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.mail_from = mail_from

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        return cls(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            smtp_use_tls=settings.smtp_use_tls,
            mail_from=settings.mail_from,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host)

    def send_signup_confirmation(self, to_email: str) -> bool:
        return self._send(
            to_email,
            "Signup succeeded!",
            "You successfully signed up to Inkwell.",
            "<h1>You successfully signed up!</h1>",
        )

    def send_password_reset(self, to_email: str, reset_url: str) -> bool:
        return self._send(
            to_email,
            "Password reset",
            f"You requested a password reset. Open this link to set a new password:\n{reset_url}\n"
            "The link expires in one hour.",
            f'<p>You requested a password reset.</p><p>Click this <a href="{reset_url}">link</a> '
            "to set a new password. The link expires in one hour.</p>",
        )

    def _send(self, to_email: str, subject: str, text_body: str, html_body: str) -> bool:
        """Deliver one message. Returns True on success (or dev-mode skip), False on failure."""
        if not self.is_configured:
            logger.info("Mail not configured; skipping %r to %s", subject, _redact(to_email))
            return True

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.mail_from
        msg["To"] = to_email
        msg.set_content(text_body)
        msg.add_alternative(html_body, subtype="html")

        context = ssl.create_default_context()
        try:
            if self.smtp_use_tls:
                with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                    server.starttls(context=context)
                    if self.smtp_user and self.smtp_password:
                        server.login(self.smtp_user, self.smtp_password)
                    server.send_message(msg)
            else:
                with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, context=context, timeout=30) as server:
                    if self.smtp_user and self.smtp_password:
                        server.login(self.smtp_user, self.smtp_password)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("Mail delivery failed for %r to %s", subject, _redact(to_email))
            return False

        logger.info("Mail sent: %r to %s", subject, _redact(to_email))
        return True
