"""
Email Service.

Sends transactional emails through an SMTP relay. Outbound calls run in
a worker thread behind a circuit breaker.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Tuple

from fastapi import Depends
from starlette.concurrency import run_in_threadpool

from sales_ledger.app.core.config import Settings, get_settings, settings as app_settings
from sales_ledger.app.core.exceptions import NotificationError
from sales_ledger.app.core.reliability import CircuitBreaker, CircuitOpenError

logger = logging.getLogger(__name__)

# Shared by every request so failures accumulate across calls
email_circuit_breaker = CircuitBreaker(
    failure_threshold=app_settings.email_failure_threshold,
    reset_timeout=app_settings.email_reset_timeout,
)


# (filename, content, MIME subtype)
Attachment = Tuple[str, str, str]


class EmailService:
    """Email service for sending transactional emails via SMTP."""

    def __init__(
        self,
        smtp_host: str = "smtp.gmail.com",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        from_email: str = "",
        from_name: str = "Sales Ledger",
        breaker: Optional[CircuitBreaker] = None
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user
        self.from_name = from_name
        self.breaker = breaker or CircuitBreaker()

    def send_email(
        self,
        to_email: str,
        subject: str,
        text_content: str,
        html_content: Optional[str] = None,
        attachments: Optional[List[Attachment]] = None
    ) -> None:
        """
        Send an email over SMTP (blocking).

        Args:
            to_email: Recipient email address
            subject: Email subject
            text_content: Plain text body
            html_content: HTML body (optional)
            attachments: text files to attach, e.g. CSV reports (optional)

        Raises:
            NotificationError: relay not configured or delivery failed
        """
        if not self.smtp_user or not self.smtp_password:
            logger.warning("Email not configured. SMTP credentials missing.")
            raise NotificationError("Email service is not configured")

        msg = self._build_message(to_email, subject, text_content, html_content, attachments)

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())
        except smtplib.SMTPAuthenticationError:
            logger.error("SMTP Authentication failed. Check email credentials.")
            raise NotificationError("Email relay rejected the credentials")
        except smtplib.SMTPException as e:
            logger.error(f"SMTP error: {e}")
            raise NotificationError(f"Email delivery failed ({type(e).__name__})")
        except OSError as e:
            # Includes connection timeouts
            logger.error(f"Network error sending email: {e}")
            raise NotificationError(f"Email relay unreachable ({type(e).__name__})")

        logger.info(f"Email sent successfully to {to_email}")

    def _build_message(
        self,
        to_email: str,
        subject: str,
        text_content: str,
        html_content: Optional[str],
        attachments: Optional[List[Attachment]],
    ) -> MIMEMultipart:
        body = MIMEMultipart('alternative')
        body.attach(MIMEText(text_content, 'plain'))
        if html_content:
            body.attach(MIMEText(html_content, 'html'))

        if attachments:
            msg = MIMEMultipart('mixed')
            msg.attach(body)
            for filename, content, subtype in attachments:
                part = MIMEText(content, subtype)
                part.add_header('Content-Disposition', 'attachment', filename=filename)
                msg.attach(part)
        else:
            msg = body

        msg['Subject'] = subject
        msg['From'] = f"{self.from_name} <{self.from_email}>"
        msg['To'] = to_email
        return msg

    async def send(
        self,
        to_email: str,
        subject: str,
        text_content: str,
        html_content: Optional[str] = None,
        attachments: Optional[List[Attachment]] = None
    ) -> None:
        """Send without blocking the event loop; fails fast while the circuit is open."""
        try:
            await self.breaker.call(
                run_in_threadpool, self.send_email,
                to_email, subject, text_content, html_content, attachments
            )
        except CircuitOpenError:
            raise NotificationError("Email relay temporarily unavailable")


def get_email_service(settings: Settings = Depends(get_settings)) -> EmailService:
    """FastAPI dependency for the email service."""
    return EmailService(
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_user=settings.smtp_user,
        smtp_password=settings.smtp_password,
        from_email=settings.smtp_from_email,
        from_name=settings.smtp_from_name,
        breaker=email_circuit_breaker,
    )
