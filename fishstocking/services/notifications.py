"""
Notification Service
Best-effort email about stocking events

Lifecycle operations only describe the mail they want sent as
PendingNotification values. The dispatcher drains them after the request
has been answered; delivery failures are logged and never reach the caller.
"""
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from fishstocking.core.config import settings
from fishstocking.core.logging import get_logger

logger = get_logger("notifications")


class NotificationKind(str, Enum):
    STOCKING_CREATED = "STOCKING_CREATED"
    STOCKING_UPDATED = "STOCKING_UPDATED"
    INSPECTOR_ASSIGNED = "INSPECTOR_ASSIGNED"


@dataclass(frozen=True)
class StockingSummary:
    """The stocking fields an email needs, copied so delivery outlives the session"""
    id: int
    water_body: str
    municipality: str

    @classmethod
    def from_stocking(cls, stocking) -> "StockingSummary":
        location = stocking.location or {}
        municipality = location.get("municipality") or {}
        return cls(
            id=stocking.id,
            water_body=location.get("name", ""),
            municipality=municipality.get("name", ""),
        )


@dataclass(frozen=True)
class PendingNotification:
    kind: NotificationKind
    recipients: Tuple[str, ...]
    stocking: StockingSummary


class NotificationDispatcher:
    """Sends stocking emails over SMTP, or logs them when SMTP is not configured"""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        sender: Optional[str] = None,
        enabled: Optional[bool] = None,
    ):
        self.smtp_host = smtp_host if smtp_host is not None else settings.SMTP_HOST
        self.smtp_port = smtp_port or settings.SMTP_PORT
        self.sender = sender or settings.MAIL_SENDER
        self.enabled = settings.NOTIFICATIONS_ENABLED if enabled is None else enabled

    def dispatch(self, pending: Iterable[PendingNotification]) -> int:
        """
        Deliver queued notifications

        Returns:
            Number of notifications delivered
        """
        delivered = 0
        for notification in pending:
            try:
                if notification.kind == NotificationKind.INSPECTOR_ASSIGNED:
                    sent = all(
                        self.notify_inspector_assigned(recipient, notification.stocking)
                        for recipient in notification.recipients
                    )
                else:
                    sent = self.notify_stocking_created_or_updated(
                        notification.recipients,
                        notification.stocking,
                        notification.kind == NotificationKind.STOCKING_UPDATED,
                    )
                if sent:
                    delivered += 1
            except Exception as e:
                logger.error(
                    f"Failed to deliver {notification.kind.value} notification "
                    f"for fish stocking {notification.stocking.id}: {e}"
                )
        return delivered

    def notify_stocking_created_or_updated(
        self, recipients: Sequence[str], stocking: StockingSummary, is_update: bool
    ) -> bool:
        if not recipients:
            return False
        title = "Fish stocking updated" if is_update else "Fish stocking created"
        body = (
            f"{title}\n\n"
            f"Water body: {stocking.water_body}\n"
            f"Municipality: {stocking.municipality}\n"
            f"Details: {self._stocking_url(stocking)}\n"
        )
        return self._send_email(list(recipients), title, body)

    def notify_inspector_assigned(self, recipient: str, stocking: StockingSummary) -> bool:
        if not recipient:
            return False
        subject = "You have been assigned to inspect a fish stocking"
        body = (
            f"{subject}\n\n"
            f"Water body: {stocking.water_body}\n"
            f"Municipality: {stocking.municipality}\n"
            f"Details: {self._stocking_url(stocking)}\n"
        )
        return self._send_email([recipient], subject, body)

    @staticmethod
    def _stocking_url(stocking: StockingSummary) -> str:
        return f"{settings.ADMIN_HOST}/fish-stockings/{stocking.id}"

    def _send_email(self, recipients: Sequence[str], subject: str, body: str) -> bool:
        """Send email notification"""
        if not self.enabled:
            return False

        if not self.smtp_host:
            logger.info(f"Email notification: {subject}")
            logger.info(f"Recipients: {', '.join(recipients)}")
            logger.debug(f"Body: {body[:200]}...")
            return True

        msg = MIMEMultipart()
        msg["From"] = self.sender
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain"))

        with smtplib.SMTP(self.smtp_host, self.smtp_port) as smtp_server:
            smtp_server.starttls()
            if settings.SMTP_USER:
                smtp_server.login(settings.SMTP_USER, settings.SMTP_PASSWORD or "")
            smtp_server.sendmail(self.sender, list(recipients), msg.as_string())
        logger.info(f"Sent '{subject}' to {len(recipients)} recipient(s)")
        return True
