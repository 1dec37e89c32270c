"""Outbox de notificações e envio do e-mail de confirmação (Resend + .ics)."""

import base64
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo

import resend
from babel import Locale, UnknownLocaleError
from babel.dates import format_datetime
from icalendar import Calendar, Event, vCalAddress, vText
from sqlmodel import Session

from salon_booking.models.notification import Notification
from salon_booking.services.timewindow import BUSINESS_TIMEZONE

logger = logging.getLogger(__name__)

SALON_NAME = "Schnittwerk"


def enqueue(
    session: Session,
    recipient: str,
    subject: str,
    payload: Dict[str, Any],
    created_by: Optional[str] = None,
    channel: str = "email",
) -> Notification:
    """Grava na transação corrente; quem chama faz o commit."""
    notification = Notification(
        channel=channel,
        recipient=recipient,
        subject=subject,
        payload=payload,
        created_by=created_by,
    )
    session.add(notification)
    return notification


@dataclass(frozen=True)
class AppointmentEmailContext:
    appointment_id: uuid.UUID
    service_name: str
    staff_name: str
    start: datetime
    end: datetime
    customer_name: str
    customer_email: str
    locale: str
    location: Optional[str] = None


def _is_german(locale: str) -> bool:
    return locale.lower().startswith("de")


def format_when(value: datetime, locale: str, tz: ZoneInfo = BUSINESS_TIMEZONE) -> str:
    """Ex.: "Montag, 03. Juni 2030 10:00" para de-CH."""
    try:
        babel_locale = Locale.parse(locale.replace("-", "_"))
    except (UnknownLocaleError, ValueError):
        logger.warning(f"Unknown locale {locale!r}, formatting date as de-CH")
        babel_locale = Locale("de", "CH")
    return format_datetime(value, "cccc, dd. LLLL yyyy HH:mm", tzinfo=tz, locale=babel_locale)


def build_confirmation_subject(context: AppointmentEmailContext) -> str:
    if _is_german(context.locale):
        return f"Terminbestätigung: {context.service_name}"
    return f"Appointment confirmed: {context.service_name}"


def build_confirmation_body(context: AppointmentEmailContext, tz: ZoneInfo = BUSINESS_TIMEZONE) -> Tuple[str, str]:
    german = _is_german(context.locale)
    when = format_when(context.start, context.locale, tz)

    lines = [
        "Liebe Kundin, lieber Kunde" if german else "Dear guest",
        "",
        (
            f"Wir bestätigen deinen Termin für {context.service_name}."
            if german
            else f"We confirm your appointment for {context.service_name}."
        ),
        f"{'Wann' if german else 'When'}: {when}",
        f"Stylist: {context.staff_name}",
    ]
    if context.location:
        lines.append(f"{'Ort' if german else 'Location'}: {context.location}")
    lines += ["", f"Bis bald im {SALON_NAME}!" if german else "We look forward to seeing you!"]

    text = "\n".join(lines)
    html = "".join(f"<p>{line}</p>" if line else "<p>&nbsp;</p>" for line in lines)
    return text, html


def build_appointment_ics(context: AppointmentEmailContext, organizer_email: str) -> str:
    """Convite VEVENT em UTC; dobra de linhas e escapes ficam com o icalendar."""
    german = _is_german(context.locale)

    calendar = Calendar()
    calendar.add("prodid", "-//schnittwerk//booking//EN")
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")
    calendar.add("method", "REQUEST")
    calendar.add("x-wr-calname", f"{SALON_NAME} Termine")

    event = Event()
    event.add("uid", f"schnittwerk-{context.appointment_id}")
    event.add("dtstamp", datetime.now(timezone.utc))
    event.add("dtstart", context.start.astimezone(timezone.utc))
    event.add("dtend", context.end.astimezone(timezone.utc))
    event.add("summary", f"{'Termin' if german else 'Appointment'}: {context.service_name}")
    event.add("description", f"{'Termin mit' if german else 'Appointment with'} {context.staff_name}")
    if context.location:
        event.add("location", context.location)
    event.add("status", "CONFIRMED")
    event.add("transp", "OPAQUE")

    organizer = vCalAddress(f"mailto:{organizer_email}")
    organizer.params["cn"] = vText(SALON_NAME)
    event["organizer"] = organizer

    calendar.add_component(event)
    return calendar.to_ical().decode("utf-8")


class EmailNotifier:
    def __init__(self, api_key: Optional[str], sender_email: str, tz: ZoneInfo = BUSINESS_TIMEZONE):
        self.api_key = api_key
        self.sender_email = sender_email
        self.tz = tz

    def send_appointment_confirmation(self, context: AppointmentEmailContext) -> Optional[dict]:
        text, html = build_confirmation_body(context, self.tz)
        ics = build_appointment_ics(context, self.sender_email)

        if not self.api_key:
            logger.info("Resend API key not configured. Skipping confirmation email.")
            return None

        resend.api_key = self.api_key
        response = resend.Emails.send(
            {
                "from": f"{SALON_NAME} <{self.sender_email}>",
                "to": [context.customer_email],
                "subject": build_confirmation_subject(context),
                "text": text,
                "html": html,
                "attachments": [
                    {
                        "filename": f"termin-{context.appointment_id}.ics",
                        "content": base64.b64encode(ics.encode("utf-8")).decode("ascii"),
                        "content_type": "text/calendar",
                    }
                ],
            }
        )
        logger.info(f"Confirmation email sent for appointment {context.appointment_id}")
        return response


def dispatch_confirmation(notifier: EmailNotifier, context: AppointmentEmailContext) -> None:
    """Envio best-effort depois do commit: falha aqui não desfaz o agendamento."""
    try:
        notifier.send_appointment_confirmation(context)
    except Exception:
        logger.exception(f"Failed to send confirmation email for appointment {context.appointment_id}")
