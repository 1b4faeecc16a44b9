from booking_api.constants import NotificationChannel, NotificationType
from booking_api.domain.reservations.schemas import ReservationCreate
from booking_api.services import notification_service
from booking_api.services.notification_service import MAX_CONTENT_LENGTH, send_email

from conftest import at, guest


def test_send_email_is_skipped_without_api_key():
    assert send_email("ana@example.com", "Hola", "text") == {"id": None, "skipped": True}


def test_non_email_channels_are_logged_and_recorded(db, dispatcher, reservation_service, business, service, email_sender):
    reservation = reservation_service.create_reservation(
        ReservationCreate(business_id=business.id, service_id=service.id, date_time=at(10), client=guest()),
        None,
    )
    email_sender.sent.clear()

    entry = dispatcher.dispatch(
        db, reservation, NotificationType.RESERVATION_CONFIRMED, "Confirmed!", channel=NotificationChannel.WHATSAPP
    )

    assert entry.channel == "whatsapp"
    assert entry.status == "sent"
    assert email_sender.sent == []


def test_content_is_truncated(db, dispatcher, reservation_service, business, service):
    reservation = reservation_service.create_reservation(
        ReservationCreate(business_id=business.id, service_id=service.id, date_time=at(10), client=guest()),
        None,
    )
    entry = dispatcher.dispatch(db, reservation, NotificationType.RESERVATION_REMINDER, "x" * 2000)
    assert len(entry.content) == MAX_CONTENT_LENGTH


def test_email_html_escapes_user_text(monkeypatch):
    sent = []
    monkeypatch.setattr(notification_service, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(notification_service.resend.Emails, "send", lambda data: sent.append(data) or {"id": "em_1"})

    send_email("ana@example.com", "Reservation cancelled", "Reason: <a href='http://evil'>click</a>")

    assert "<a" not in sent[0]["html"]
    assert sent[0]["html"] == "<p>Reason: &lt;a href=&#x27;http://evil&#x27;&gt;click&lt;/a&gt;</p>"
    assert sent[0]["text"] == "Reason: <a href='http://evil'>click</a>"
