"""Criação, cancelamento e pedido de remarcação de agendamentos.

Fluxo de criação:
    1. idempotency key já vista -> devolve o agendamento original, sem efeitos
       (coluna única: um insert concorrente com a mesma key vira duplicata)
    2. valida serviço, profissional, janela e horário de funcionamento
    3. numa transação: lock da agenda do profissional, checagem de conflito
       (com buffers), upsert do cliente, agendamento + eventos + outbox
    4. fora da transação (router): e-mail de confirmação em background
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, select

from salon_booking.core.errors import Conflict, InvalidInput, NotFound
from salon_booking.core.security import Actor, can_override_cancellation_window
from salon_booking.models.appointment import (
    INACTIVE_STATUSES,
    Appointment,
    AppointmentEvent,
    AppointmentEventType,
    AppointmentStatus,
)
from salon_booking.models.customer import Customer
from salon_booking.models.service import Service
from salon_booking.models.staff import Staff
from salon_booking.models.types import utcnow
from salon_booking.schemas import AppointmentSummary, BookingCreate, CustomerInput
from salon_booking.services.calendar import BusinessCalendar
from salon_booking.services.catalog import StaffOffering, get_bookable_service, list_offerings
from salon_booking.services.notifications import AppointmentEmailContext, enqueue
from salon_booking.services.settings_store import BookingSettings, load_booking_settings
from salon_booking.services.timewindow import (
    BUSINESS_TIMEZONE,
    parse_local_datetime,
    parse_range_literal,
    shift_minutes,
)

logger = logging.getLogger(__name__)


@dataclass
class BookingResult:
    appointment: AppointmentSummary
    was_duplicate: bool
    # só para agendamentos novos: dados do e-mail pós-commit
    email_context: Optional[AppointmentEmailContext] = None


def _summary(
    appointment: Appointment,
    staff_name: str,
    service_name: str,
    tz: ZoneInfo,
) -> AppointmentSummary:
    return AppointmentSummary(
        id=appointment.id,
        status=appointment.status,
        staff_id=appointment.staff_id,
        staff_name=staff_name,
        service_id=appointment.service_id,
        service_name=service_name,
        customer_id=appointment.customer_id,
        start=appointment.start_at.astimezone(tz),
        end=appointment.end_at.astimezone(tz),
        slot=appointment.slot,
        price_cents=appointment.price_cents,
        currency=appointment.currency,
        notes=appointment.notes,
    )


def describe_appointment(session: Session, appointment: Appointment, tz: ZoneInfo = BUSINESS_TIMEZONE) -> AppointmentSummary:
    staff = session.get(Staff, appointment.staff_id)
    service = session.get(Service, appointment.service_id)
    return _summary(
        appointment,
        staff.display_name if staff else "Team",
        service.name if service else "Service",
        tz,
    )


def find_appointment_by_idempotency(session: Session, key: str) -> Optional[Appointment]:
    return session.exec(select(Appointment).where(Appointment.idempotency_key == key)).first()


def find_conflicts(
    session: Session,
    staff_id: uuid.UUID,
    start: datetime,
    end: datetime,
    settings: BookingSettings,
    lock: bool = False,
) -> List[Appointment]:
    """Agendamentos ativos cuja janela com buffers cruza a do novo horário.

    Mesma regra do cálculo de disponibilidade: [S - before, E + after) contra
    [s - before, e + after), que equivale a comparar [S, E) com o novo
    intervalo alargado por before + after dos dois lados.
    """
    margin = settings.buffer_total_minutes
    statement = select(Appointment).where(
        Appointment.staff_id == staff_id,
        Appointment.status.not_in(INACTIVE_STATUSES),
        Appointment.start_at < shift_minutes(end, margin),
        Appointment.end_at > shift_minutes(start, -margin),
    )
    if lock:
        statement = statement.with_for_update()
    return list(session.exec(statement).all())


def lock_staff_schedule(session: Session, staff_id: uuid.UUID) -> Staff:
    """Lock exclusivo por profissional; bookings de outros profissionais seguem em paralelo."""
    return session.exec(select(Staff).where(Staff.id == staff_id).with_for_update()).one()


def select_staff(session: Session, service: Service, staff_id: Optional[uuid.UUID]) -> StaffOffering:
    offerings = list_offerings(session, service)
    if not offerings:
        raise Conflict("No staff configured for this service.")

    candidates = [offering for offering in offerings if offering.staff.is_active]
    if not candidates:
        raise Conflict("No active staff available for this service.")

    if staff_id is None:
        return candidates[0]

    for offering in candidates:
        if offering.staff.id == staff_id:
            return offering
    raise NotFound("Requested staff member cannot perform this service.")


def upsert_customer(session: Session, data: CustomerInput, now: datetime) -> Tuple[Customer, bool]:
    """Insere ou atualiza o cliente pelo e-mail.

    Retorna o cliente e se ele já tinha opt-in de marketing antes. O opt-in
    nunca é revogado aqui (existing OR requested).
    """
    email = str(data.email).strip().lower()
    existing = session.exec(select(Customer).where(Customer.email == email)).first()
    was_opted_in = bool(existing and existing.marketing_opt_in)

    table = Customer.__table__
    insert = pg_insert if session.get_bind().dialect.name == "postgresql" else sqlite_insert
    statement = insert(table).values(
        id=uuid.uuid4(),
        email=email,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        marketing_opt_in=bool(data.marketing_opt_in),
        notes=data.notes,
        created_at=now,
        updated_at=now,
    )
    statement = statement.on_conflict_do_update(
        index_elements=[table.c.email],
        set_={
            "first_name": statement.excluded.first_name,
            "last_name": statement.excluded.last_name,
            "phone": func.coalesce(statement.excluded.phone, table.c.phone),
            "marketing_opt_in": or_(table.c.marketing_opt_in, statement.excluded.marketing_opt_in),
            "notes": func.coalesce(statement.excluded.notes, table.c.notes),
            "updated_at": statement.excluded.updated_at,
        },
    )
    session.execute(statement)

    customer = session.exec(
        select(Customer).where(Customer.email == email).execution_options(populate_existing=True)
    ).one()
    return customer, was_opted_in


# =========================
# CRIAR
# =========================

def create_booking(
    session: Session,
    payload: BookingCreate,
    actor: Actor,
    now: Optional[datetime] = None,
    tz: ZoneInfo = BUSINESS_TIMEZONE,
) -> BookingResult:
    now = now or utcnow()
    key = payload.idempotency_key

    try:
        existing = find_appointment_by_idempotency(session, key)
        if existing is not None:
            logger.info(f"Idempotent return for key {key}: appointment {existing.id}")
            return BookingResult(describe_appointment(session, existing, tz), was_duplicate=True)

        service = get_bookable_service(session, payload.service_id)
        offering = select_staff(session, service, payload.staff_id)
        staff = offering.staff

        start = parse_local_datetime(payload.start, tz).replace(second=0, microsecond=0)
        end = shift_minutes(start, offering.duration_minutes)
        if end <= start:
            raise InvalidInput("Invalid booking window.")
        if start < now:
            raise InvalidInput("The selected time is in the past.")

        settings = load_booking_settings(session)
        window = BusinessCalendar.load(session, start.date(), start.date(), tz).open_window(start.date())
        buffered_start = shift_minutes(start, -settings.buffer_before_minutes)
        buffered_end = shift_minutes(end, settings.buffer_after_minutes)
        if window is None or not window.contains(buffered_start, buffered_end):
            raise Conflict("The selected time is outside opening hours.")

        lock_staff_schedule(session, staff.id)

        # repetido sob o lock: dois envios da mesma key ao mesmo tempo
        existing = find_appointment_by_idempotency(session, key)
        if existing is not None:
            summary = describe_appointment(session, existing, tz)
            session.rollback()
            logger.info(f"Idempotent return for key {key}: appointment {existing.id}")
            return BookingResult(summary, was_duplicate=True)

        if find_conflicts(session, staff.id, start, end, settings, lock=True):
            raise Conflict("The selected time slot is no longer available.")

        customer, was_opted_in = upsert_customer(session, payload.customer, now)

        appointment = Appointment(
            customer_id=customer.id,
            staff_id=staff.id,
            service_id=service.id,
            idempotency_key=key,
            status=AppointmentStatus.PENDING.value,
            start_at=start,
            end_at=end,
            price_cents=offering.price_cents,
            currency=service.currency,
            notes=payload.notes or payload.customer.notes,
            created_at=now,
            updated_at=now,
        )
        session.add(appointment)
        session.flush()

        appointment.status = AppointmentStatus.CONFIRMED.value
        appointment.updated_at = now
        session.add(appointment)

        session.add_all(
            [
                AppointmentEvent(
                    appointment_id=appointment.id,
                    event_type=AppointmentEventType.CREATED.value,
                    payload={
                        "source": "online",
                        "idempotencyKey": key,
                        "locale": payload.locale,
                        "slot": appointment.slot,
                    },
                    created_by=actor.id,
                    created_at=now,
                ),
                AppointmentEvent(
                    appointment_id=appointment.id,
                    event_type=AppointmentEventType.CONFIRMED.value,
                    payload={"confirmedBy": actor.label},
                    created_by=actor.id,
                    created_at=now,
                ),
            ]
        )

        enqueue(
            session,
            recipient=customer.email,
            subject="booking-confirmation",
            payload={
                "appointmentId": str(appointment.id),
                "locale": payload.locale,
                "template": "appointment-confirmation",
            },
            created_by=actor.id,
        )
        if payload.customer.marketing_opt_in and not was_opted_in:
            enqueue(
                session,
                recipient=customer.email,
                subject="newsletter-double-opt-in",
                payload={"type": "marketing_double_opt_in", "sourceAppointmentId": str(appointment.id)},
                created_by=actor.id,
            )

        summary = _summary(appointment, staff.display_name, service.name, tz)
        session.commit()
    except IntegrityError:
        # mesma key gravada em paralelo por outra transação (lock de outro profissional)
        session.rollback()
        existing = find_appointment_by_idempotency(session, key)
        if existing is None:
            raise
        summary = describe_appointment(session, existing, tz)
        session.rollback()
        logger.info(f"Idempotent return for key {key} after concurrent insert: appointment {existing.id}")
        return BookingResult(summary, was_duplicate=True)
    except Exception:
        session.rollback()
        raise

    logger.info(f"Appointment {summary.id} created for staff {summary.staff_id} at {summary.slot}")

    email_context = AppointmentEmailContext(
        appointment_id=summary.id,
        service_name=summary.service_name,
        staff_name=summary.staff_name,
        start=summary.start,
        end=summary.end,
        customer_name=f"{customer.first_name} {customer.last_name}".strip(),
        customer_email=customer.email,
        locale=payload.locale,
    )
    return BookingResult(summary, was_duplicate=False, email_context=email_context)


# =========================
# CANCELAR
# - dentro da janela só admin / manager / recepção
# =========================

def cancel_booking(
    session: Session,
    appointment_id: uuid.UUID,
    reason: str,
    actor: Actor,
    now: Optional[datetime] = None,
    tz: ZoneInfo = BUSINESS_TIMEZONE,
) -> AppointmentSummary:
    now = now or utcnow()

    try:
        settings = load_booking_settings(session)

        appointment = session.exec(
            select(Appointment).where(Appointment.id == appointment_id).with_for_update()
        ).first()
        if appointment is None:
            raise NotFound("Appointment not found.")

        if appointment.status == AppointmentStatus.CANCELLED.value:
            raise Conflict("Appointment already cancelled.")

        start, _ = parse_range_literal(appointment.slot, tz)
        hours_until_start = (start - now).total_seconds() / 3600
        if hours_until_start < settings.cancellation_window_hours and not can_override_cancellation_window(actor):
            raise Conflict(
                "Appointments within the cancellation window require a reschedule request.",
                details={
                    "hoursUntilStart": round(hours_until_start, 2),
                    "cancellationWindowHours": settings.cancellation_window_hours,
                },
            )

        previous_status = appointment.status
        appointment.status = AppointmentStatus.CANCELLED.value
        appointment.cancellation_reason = reason
        appointment.cancelled_at = now
        appointment.updated_at = now
        session.add(appointment)

        session.add(
            AppointmentEvent(
                appointment_id=appointment.id,
                event_type=AppointmentEventType.CANCELLED.value,
                payload={"reason": reason, "cancelledBy": actor.label, "previousStatus": previous_status},
                created_by=actor.id,
                created_at=now,
            )
        )

        customer = session.get(Customer, appointment.customer_id)
        enqueue(
            session,
            recipient=customer.email if customer else "",
            subject="booking-cancellation",
            payload={"appointmentId": str(appointment.id), "reason": reason},
            created_by=actor.id,
        )

        summary = describe_appointment(session, appointment, tz)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Appointment {summary.id} cancelled by {actor.label}")
    return summary


# =========================
# PEDIDO DE REMARCAÇÃO
# só registra e avisa o salão; o horário não muda
# =========================

def request_reschedule(
    session: Session,
    appointment_id: uuid.UUID,
    requested_start: str,
    notes: Optional[str],
    actor: Actor,
    ops_inbox: str,
    tz: ZoneInfo = BUSINESS_TIMEZONE,
) -> None:
    requested = parse_local_datetime(requested_start, tz)

    try:
        appointment = session.get(Appointment, appointment_id)
        if appointment is None:
            raise NotFound("Appointment not found.")

        if appointment.status in (AppointmentStatus.CANCELLED.value, AppointmentStatus.COMPLETED.value):
            raise Conflict(f"Appointment cannot be rescheduled in status {appointment.status}.")

        session.add(
            AppointmentEvent(
                appointment_id=appointment.id,
                event_type=AppointmentEventType.RESCHEDULED.value,
                payload={
                    "requestedStart": requested.isoformat(),
                    "notes": notes,
                    "requestedBy": actor.label,
                    "currentSlot": appointment.slot,
                },
                created_by=actor.id,
            )
        )
        enqueue(
            session,
            recipient=ops_inbox,
            subject="booking-reschedule-request",
            payload={
                "appointmentId": str(appointment.id),
                "requestedStart": requested.isoformat(),
                "notes": notes,
            },
            created_by=actor.id,
        )
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Reschedule requested for appointment {appointment_id}")
