import uuid
from dataclasses import replace
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response, status
from sqlmodel import Session

from salon_booking.core.security import Actor, get_current_actor
from salon_booking.database import get_session
from salon_booking.schemas import (
    AppointmentSummary,
    AvailabilityOut,
    BookingCancel,
    BookingCreate,
    BookingOut,
    RescheduleAccepted,
    RescheduleRequest,
    SlotOut,
    StaffAvailabilityOut,
)
from salon_booking.services.availability import get_availability
from salon_booking.services.booking import cancel_booking, create_booking, request_reschedule
from salon_booking.services.notifications import dispatch_confirmation
from salon_booking.services.timewindow import parse_local_datetime

router = APIRouter(prefix="/booking", tags=["booking"])


# =========================
# HORÁRIOS DISPONÍVEIS
# GET /booking/availability?serviceId=...&from=...&to=...[&staffId=...]
# =========================
@router.get("/availability", response_model=AvailabilityOut)
def get_available_slots(
    request: Request,
    service_id: uuid.UUID = Query(alias="serviceId"),
    from_: str = Query(alias="from"),
    to: str = Query(),
    staff_id: Optional[uuid.UUID] = Query(default=None, alias="staffId"),
    session: Session = Depends(get_session),
):
    tz = request.app.state.timezone
    result = get_availability(
        session,
        service_id,
        parse_local_datetime(from_, tz),
        parse_local_datetime(to, tz),
        staff_id=staff_id,
        tz=tz,
    )
    return AvailabilityOut(
        service_id=result.service_id,
        from_=result.from_,
        to=result.to,
        staff=[
            StaffAvailabilityOut(
                staff_id=entry.staff_id,
                staff_name=entry.staff_name,
                color_hex=entry.color_hex,
                slots=[
                    SlotOut(start=slot.start, end=slot.end, duration_minutes=slot.duration_minutes)
                    for slot in entry.slots
                ],
            )
            for entry in result.staff
        ],
    )


# =========================
# CRIAR AGENDAMENTO
# 201 novo, 200 reenvio com a mesma idempotency key
# =========================
@router.post("/create", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: BookingCreate,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    result = create_booking(session, payload, actor, tz=request.app.state.timezone)

    if result.was_duplicate:
        response.status_code = status.HTTP_200_OK
    else:
        context = replace(result.email_context, location=request.app.state.settings.site_address)
        background_tasks.add_task(dispatch_confirmation, request.app.state.notifier, context)

    return BookingOut(**result.appointment.model_dump(), was_duplicate=result.was_duplicate)


# =========================
# CANCELAR AGENDAMENTO
# =========================
@router.post("/cancel", response_model=AppointmentSummary)
def cancel_appointment(
    payload: BookingCancel,
    request: Request,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    return cancel_booking(
        session,
        payload.appointment_id,
        payload.reason,
        actor,
        tz=request.app.state.timezone,
    )


# =========================
# PEDIR REMARCAÇÃO (o salão entra em contato)
# =========================
@router.post(
    "/reschedule-request",
    response_model=RescheduleAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
def reschedule_request(
    payload: RescheduleRequest,
    request: Request,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    request_reschedule(
        session,
        payload.appointment_id,
        payload.requested_start,
        payload.notes,
        actor,
        ops_inbox=request.app.state.settings.site_email,
        tz=request.app.state.timezone,
    )
    return RescheduleAccepted(appointment_id=payload.appointment_id)
