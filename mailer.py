from __future__ import annotations
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from flask import current_app

log = logging.getLogger(__name__)


class MailError(Exception):
    pass


def outbox() -> list[EmailMessage]:
    """Messages kept in memory while MAIL_SUPPRESS_SEND is on."""
    return current_app.extensions.setdefault("mail_outbox", [])


def build_message(to: str, subject: str, text: str, html: str | None = None) -> EmailMessage:
    cfg = current_app.config
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = formataddr((cfg.get("MAIL_SENDER_NAME", ""), cfg["FROM_EMAIL"]))
    msg["To"] = to
    msg.set_content(text)
    if html:
        msg.add_alternative(html, subtype="html")
    return msg


def _smtp_connection():
    cfg = current_app.config
    if cfg.get("SMTP_USE_SSL", True):
        smtp = smtplib.SMTP_SSL(cfg["SMTP_HOST"], cfg["SMTP_PORT"], timeout=30)
    else:
        smtp = smtplib.SMTP(cfg["SMTP_HOST"], cfg["SMTP_PORT"], timeout=30)
        smtp.starttls()
    if cfg.get("SMTP_USER"):
        smtp.login(cfg["SMTP_USER"], cfg.get("SMTP_PASS") or "")
    return smtp


def deliver(messages: list[EmailMessage]) -> None:
    """Send prepared messages over a single SMTP connection.

    Raises MailError for the first message that cannot be sent; callers that
    want per-recipient results should call it once per message.
    """
    if current_app.config.get("MAIL_SUPPRESS_SEND"):
        outbox().extend(messages)
        for m in messages:
            log.info("mail suppressed to=%s subject=%s", m["To"], m["Subject"])
        return
    try:
        with _smtp_connection() as smtp:
            for m in messages:
                smtp.send_message(m)
                log.info("mail sent to=%s", m["To"])
    except (smtplib.SMTPException, OSError) as e:
        raise MailError(str(e)) from e


def send_email(to: str, subject: str, text: str, html: str | None = None) -> None:
    deliver([build_message(to, subject, text, html)])
