"""
Reservation notification dispatcher
Sends reservation events to the client and records every attempt in the
reservation's append-only notification log. Delivery failures are logged and
recorded, never raised: a reservation change is not rolled back because an
email could not be sent.
"""

import html
import logging
from datetime import datetime
from typing import Callable, Optional

import resend
from sqlalchemy.orm import Session

from ..config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from ..constants import NotificationChannel, NotificationStatus, NotificationType
from ..models import Reservation, ReservationNotification
from ..shared.datetime_utils import utc_now

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY

SUBJECTS = {
    NotificationType.RESERVATION_CREATED.value: "Reservation received",
    NotificationType.RESERVATION_CONFIRMED.value: "Reservation confirmed",
    NotificationType.RESERVATION_CANCELLED.value: "Reservation cancelled",
    NotificationType.RESERVATION_COMPLETED.value: "Thanks for your visit",
    NotificationType.RESERVATION_NO_SHOW.value: "We missed you",
    NotificationType.RESERVATION_REMINDER.value: "Reservation reminder",
    NotificationType.PAYMENT_RECEIVED.value: "Payment received",
}

MAX_CONTENT_LENGTH = 500


def send_email(to: str, subject: str, text: str) -> dict:
    """Send a plain notification email through Resend"""
    if not RESEND_API_KEY:
        # Local development: nothing to deliver through
        logger.info(f"Email delivery disabled (RESEND_API_KEY missing); would send '{subject}' to {to}")
        return {"id": None, "skipped": True}

    email_data = {
        "from": EMAIL_FROM_ADDRESS,
        "to": [to],
        "subject": subject,
        "html": f"<p>{html.escape(text, quote=True)}</p>",
        "text": text,
    }
    response = resend.Emails.send(email_data)
    logger.info(f"Email sent successfully via Resend: {response}")
    return response


class NotificationDispatcher:
    """Fire-and-forget delivery of reservation events"""

    def __init__(
        self,
        email_sender: Callable[[str, str, str], dict] = send_email,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.email_sender = email_sender
        self.clock = clock

    def _deliver(self, reservation: Reservation, notification_type: str, channel: str, content: str) -> None:
        if channel != NotificationChannel.EMAIL.value:
            # SMS / WhatsApp / push providers are not wired; the log entry is the delivery record
            logger.info(f"{channel} notification for reservation {reservation.id}: {content}")
            return

        recipient = reservation.contact_email
        if not recipient:
            raise ValueError("Reservation has no contact email")
        subject = SUBJECTS.get(notification_type, "Reservation update")
        self.email_sender(recipient, subject, content)

    def dispatch(
        self,
        db: Session,
        reservation: Reservation,
        notification_type: NotificationType,
        content: str,
        channel: NotificationChannel = NotificationChannel.EMAIL,
    ) -> Optional[ReservationNotification]:
        """
        Deliver a notification and append it to the reservation log.

        Returns the log entry, or None when even the log could not be written.
        """
        notification_type = NotificationType(notification_type).value
        channel = NotificationChannel(channel).value
        status = NotificationStatus.SENT.value

        try:
            self._deliver(reservation, notification_type, channel, content)
        except Exception as e:
            status = NotificationStatus.FAILED.value
            logger.error(f"Failed to send {notification_type} for reservation {reservation.id}: {e}")

        entry = ReservationNotification(
            reservation_id=reservation.id,
            type=notification_type,
            channel=channel,
            status=status,
            content=content[:MAX_CONTENT_LENGTH],
            sent_at=self.clock(),
        )
        try:
            db.add(entry)
            db.commit()
            return entry
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to record {notification_type} for reservation {reservation.id}: {e}")
            return None
