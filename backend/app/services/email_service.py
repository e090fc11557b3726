"""
Email Service for ServiceLane.

Sends transactional email through the Resend API, or only logs it in demo mode.

Features:
- Welcome email after signup
- Quote received / quote accepted / job completed notices
- Demo mode (logging only, nothing is sent)
- Async operation (Resend is called in an executor)
"""

import asyncio
import html
import logging
from typing import Optional

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)


# =============================================================================
# Email Templates
# =============================================================================

WELCOME_TEMPLATE = """
Hi {name},

Welcome to ServiceLane! Your account has been created.

You can sign in here:
{login_link}

The ServiceLane Team
"""

QUOTE_RECEIVED_TEMPLATE = """
Hi {name},

A provider sent a quote of ${amount:.2f} for your request "{title}".

Review it here:
{link}

The ServiceLane Team
"""

QUOTE_ACCEPTED_TEMPLATE = """
Hi {name},

Good news: your quote for "{title}" has been accepted.

Open the job:
{link}

The ServiceLane Team
"""

JOB_COMPLETED_TEMPLATE = """
Hi {name},

Your job "{title}" has been marked as completed. Please leave a review.

{link}

The ServiceLane Team
"""

HTML_WRAPPER = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background-color: #1a56db; color: white; padding: 20px; text-align: center; }}
        .content {{ padding: 20px; background-color: #f9fafb; white-space: pre-line; }}
        .footer {{ padding: 20px; text-align: center; font-size: 12px; color: #666; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>ServiceLane</h1></div>
        <div class="content">{body}</div>
        <div class="footer">You received this email because you have a ServiceLane account.</div>
    </div>
</body>
</html>
"""


def html_body(text_content: str) -> str:
    """Wrap a plain-text email in the HTML layout, escaping names and titles."""
    return HTML_WRAPPER.format(body=html.escape(text_content))


class EmailService:
    """
    Email sending service.

    In demo mode (EMAIL_DEMO_MODE=True) it only logs, nothing is sent.
    Otherwise it uses the Resend API.
    """

    _instance: Optional["EmailService"] = None
    _initialized: bool = False

    def __new__(cls) -> "EmailService":
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize service."""
        if self._initialized:
            return

        self._initialized = True
        self._resend_client = None
        self._demo_mode = settings.EMAIL_DEMO_MODE
        self._from_email = settings.EMAIL_FROM

        if self._demo_mode:
            logger.info("EmailService: demo mode, emails are only logged")
        else:
            self._init_resend()

    def _init_resend(self) -> None:
        """Initialize Resend client."""
        if not settings.RESEND_API_KEY:
            logger.warning("RESEND_API_KEY is not set, switching to demo mode")
            self._demo_mode = True
            return

        resend.api_key = settings.RESEND_API_KEY
        self._resend_client = resend
        logger.info("EmailService: Resend client initialized")

    def _link(self, path: str) -> str:
        return f"{settings.FRONTEND_URL.rstrip('/')}{path}"

    async def send_welcome(self, to_email: str, name: str) -> bool:
        """Send welcome email after signup."""
        text_content = WELCOME_TEMPLATE.format(name=name, login_link=self._link("/login"))
        return await self._send_email(
            to_email=to_email,
            subject="Welcome to ServiceLane",
            text_content=text_content,
            html_content=html_body(text_content),
        )

    async def send_quote_received(
        self,
        to_email: str,
        name: str,
        title: str,
        amount: float,
        request_id: str,
    ) -> bool:
        """
        Tell a request owner that a new quote arrived.

        Args:
            to_email: Owner email
            name: Owner name
            title: Request title
            amount: Quoted amount
            request_id: Request the quote belongs to

        Returns:
            True if successful
        """
        text_content = QUOTE_RECEIVED_TEMPLATE.format(
            name=name,
            title=title,
            amount=amount,
            link=self._link(f"/requests/{request_id}"),
        )
        return await self._send_email(
            to_email=to_email,
            subject=f"New quote for {title}",
            text_content=text_content,
            html_content=html_body(text_content),
        )

    async def send_quote_accepted(self, to_email: str, name: str, title: str, job_id: str) -> bool:
        """Tell a provider that their quote was accepted."""
        text_content = QUOTE_ACCEPTED_TEMPLATE.format(
            name=name, title=title, link=self._link(f"/jobs/{job_id}")
        )
        return await self._send_email(
            to_email=to_email,
            subject="Your quote was accepted",
            text_content=text_content,
            html_content=html_body(text_content),
        )

    async def send_job_completed(self, to_email: str, name: str, title: str, job_id: str) -> bool:
        text_content = JOB_COMPLETED_TEMPLATE.format(
            name=name, title=title, link=self._link(f"/jobs/{job_id}")
        )
        return await self._send_email(
            to_email=to_email,
            subject="Your job is complete",
            text_content=text_content,
            html_content=html_body(text_content),
        )

    async def _send_email(
        self,
        to_email: str,
        subject: str,
        text_content: str,
        html_content: Optional[str] = None,
    ) -> bool:
        """
        Internal email sending implementation.

        In demo mode, just logs instead of sending. Failures are logged and
        reported through the return value, never raised.

        Returns:
            True if successful
        """
        if self._demo_mode:
            logger.info(
                f"[DEMO] Sending email:\n"
                f"  To: {to_email}\n"
                f"  Subject: {subject}\n"
                f"  Body (first 200 chars): {text_content[:200]}..."
            )
            return True

        if not self._resend_client:
            logger.error("Resend client not available")
            return False

        try:
            params = {
                "from": self._from_email,
                "to": [to_email],
                "subject": subject,
                "text": text_content,
            }

            if html_content:
                params["html"] = html_content

            # Resend is synchronous, run in executor
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(
                None,
                lambda: self._resend_client.Emails.send(params),
            )

            logger.info(f"Email sent: {to_email}, id: {result.get('id', 'N/A')}")
            return True

        except Exception as e:
            logger.error(f"Email sending failed ({to_email}): {e}")
            return False

    @property
    def is_demo_mode(self) -> bool:
        """Check if running in demo mode."""
        return bool(self._demo_mode)


# =============================================================================
# Module-level Functions
# =============================================================================

_service_instance: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """
    Get singleton service instance.

    Returns:
        EmailService instance
    """
    global _service_instance
    if _service_instance is None:
        _service_instance = EmailService()
    return _service_instance
