from __future__ import annotations

import html
import logging
import re
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config import Settings
from ..errors import MailDeliveryError, MailNotConfiguredError

logger = logging.getLogger("app.mail")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(address: str) -> str:
    return (address or "").strip().lower()


def validate_email_addresses(addresses: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Split addresses into (valid, invalid); valid ones normalized and de-duplicated."""
    valid: List[str] = []
    invalid: List[str] = []
    for raw in addresses:
        addr = normalize_email(raw)
        if not _EMAIL_RE.match(addr):
            invalid.append(raw)
            continue
        if addr not in valid:
            valid.append(addr)
    return valid, invalid


def _html_body(title: str, body: str) -> str:
    paragraphs = "".join(
        f"<p>{html.escape(block).replace(chr(10), '<br>')}</p>"
        for block in body.split("\n\n")
        if block.strip()
    )
    return (
        "<html><body style=\"font-family: Arial, sans-serif; line-height: 1.5;\">"
        f"<h2>{html.escape(title)}</h2>{paragraphs}"
        "<hr><p style=\"color:#888;font-size:12px\">Sent by Meeting Notes Summarizer</p>"
        "</body></html>"
    )


class Mailer:
    """SMTP relay client used to share summaries by email."""

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        use_tls: bool = True,
        timeout: int = 30,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender or user
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        return cls(
            host=settings.email_host,
            port=settings.email_port,
            user=settings.email_user,
            password=settings.email_pass,
            sender=settings.email_from,
            use_tls=settings.email_use_tls,
            timeout=settings.email_timeout_s,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host and self.user and self.password)

    def _require_config(self) -> None:
        if not self.configured:
            raise MailNotConfiguredError(
                "Email service not configured: set EMAIL_HOST, EMAIL_USER and EMAIL_PASS"
            )

    def _open(self) -> smtplib.SMTP:
        smtp = smtplib.SMTP(self.host or "", self.port, timeout=self.timeout)
        try:
            if self.use_tls:
                smtp.starttls(context=ssl.create_default_context())
            if self.user and self.password:
                smtp.login(self.user, self.password)
        except Exception:
            smtp.close()
            raise
        return smtp

    def build_message(self, recipients: List[str], body: str, title: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = f"Meeting Summary: {title}"
        msg["From"] = self.sender or ""
        msg["To"] = ", ".join(recipients)
        msg["Date"] = formatdate(localtime=False)
        msg["Message-ID"] = make_msgid(domain=(self.sender or "localhost").split("@")[-1])
        msg.set_content(f"{title}\n\n{body}\n")
        msg.add_alternative(_html_body(title, body), subtype="html")
        return msg

    def _close(self, smtp: smtplib.SMTP) -> None:
        """QUIT politely; a relay that drops the link here has already accepted the mail."""
        try:
            smtp.quit()
        except (smtplib.SMTPException, OSError) as e:
            logger.debug(f"smtp quit failed, closing socket: {e}")
            smtp.close()

    def send_summary(self, recipients: List[str], body: str, title: str) -> str:
        """Deliver the summary and return its Message-ID."""
        self._require_config()
        msg = self.build_message(recipients, body, title)
        try:
            smtp = self._open()
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"smtp connect failed: {e}")
            raise MailDeliveryError(str(e)) from e
        try:
            smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"smtp delivery failed: {e}")
            smtp.close()
            raise MailDeliveryError(str(e)) from e
        self._close(smtp)
        logger.info(f"summary mailed to {len(recipients)} recipient(s)")
        return str(msg["Message-ID"])

    def test_connection(self) -> Dict[str, Any]:
        try:
            self._require_config()
            smtp = self._open()
        except Exception as e:
            return {"success": False, "error": str(e)}
        try:
            smtp.noop()
            return {"success": True}
        except Exception as e:
            return {"success": False, "error": str(e)}
        finally:
            self._close(smtp)
