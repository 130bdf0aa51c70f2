"""Email client using Resend API."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import resend

from src.inbox_admin.core.config import Settings, get_settings
from src.inbox_admin.core.logging import email_for_log, get_logger
from src.inbox_admin.core.notifications.templates import EmailNotice, render_email

logger = get_logger(__name__)

# Thread pool for the blocking Resend SDK
_email_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="email_sender")


class EmailSender:
    """Best-effort email delivery.

    ``send`` never raises: failures are logged and reported as False so
    callers can surface them without undoing their own work.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    async def send(self, notice: EmailNotice) -> bool:
        subject, body = render_email(notice, self.settings.app_name)
        try:
            await self._deliver(notice, subject, body)
        except TimeoutError:
            logger.error(
                "Email send timed out",
                email_type=notice.template.value,
                to=email_for_log(notice.to),
                timeout=self.settings.email_send_timeout_seconds,
            )
            return False
        except Exception as e:
            logger.error(
                "Failed to send email",
                email_type=notice.template.value,
                to=email_for_log(notice.to),
                error=str(e),
            )
            return False

        logger.info("Email sent", email_type=notice.template.value, to=email_for_log(notice.to))
        return True

    async def _deliver(self, notice: EmailNotice, subject: str, body: str) -> None:
        if not self.settings.resend_api_key:
            # Dev mode: nothing leaves the process
            logger.warning(
                "RESEND_API_KEY not set - email not sent",
                email_type=notice.template.value,
                to=email_for_log(notice.to),
            )
            return

        resend.api_key = self.settings.resend_api_key
        params = {
            "from": self.settings.email_from,
            "to": [notice.to],
            "subject": subject,
            "html": body,
        }
        loop = asyncio.get_running_loop()
        await asyncio.wait_for(
            loop.run_in_executor(_email_executor, resend.Emails.send, params),
            timeout=self.settings.email_send_timeout_seconds,
        )
