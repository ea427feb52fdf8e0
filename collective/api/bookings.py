from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from collective.api.responses import json_response, preflight, read_json_body
from collective.api.schemas import (
    BOOKING_REQUIRED_FIELDS,
    BookingRequestSchema,
    CancelRequestSchema,
    missing_fields,
)
from collective.application.exceptions import AppointmentCommitError
from collective.application.use_cases.book_event import BookEventUseCase
from collective.application.use_cases.cancel_booking import CancelBookingUseCase
from collective.wiring.dependencies import get_book_event_factory, get_cancel_booking_use_case


router = APIRouter()
logger = logging.getLogger(__name__)


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(p) for p in first.get("loc", ()))
    return f"Invalid {field}: {first.get('msg')}" if field else str(first.get("msg"))


@router.options("/book")
def book_preflight() -> Response:
    return preflight()


@router.post("/book")
async def book(
    request: Request,
    use_case_factory: Callable[[], BookEventUseCase] = Depends(get_book_event_factory),
) -> JSONResponse:
    payload = await read_json_body(request)

    missing = missing_fields(payload, BOOKING_REQUIRED_FIELDS)
    if missing:
        return json_response({"error": f"Missing required fields: {', '.join(missing)}"}, status_code=400)

    try:
        booking = BookingRequestSchema.model_validate(payload).to_entity()
    except ValidationError as e:
        return json_response({"error": _validation_message(e)}, status_code=400)

    use_case = use_case_factory()
    try:
        outcome = await run_in_threadpool(use_case.execute, booking)
    except AppointmentCommitError as e:
        return json_response({"error": e.user_message, "details": str(e)}, status_code=500)
    except Exception as e:
        logger.exception("Booking failed", extra={"email": booking.email, "error": str(e)})
        return json_response({"error": "Failed to process booking", "details": str(e)}, status_code=500)

    return json_response(
        {
            "success": True,
            "message": "Booking confirmed" if outcome.confirmed else "Booking received, confirmation pending",
            "contactId": outcome.contact_id,
            "appointmentId": outcome.appointment_id,
            "confirmed": outcome.confirmed,
        }
    )


@router.options("/cancel")
def cancel_preflight() -> Response:
    return preflight()


@router.post("/cancel")
async def cancel(
    request: Request,
    use_case: CancelBookingUseCase = Depends(get_cancel_booking_use_case),
) -> JSONResponse:
    payload = await read_json_body(request)
    try:
        req = CancelRequestSchema.model_validate(payload)
    except ValidationError as e:
        return json_response({"error": _validation_message(e)}, status_code=400)

    if not req.appointment_id:
        return json_response(
            {"error": "Missing appointment ID", "message": "Unable to cancel without booking reference"},
            status_code=400,
        )

    try:
        await run_in_threadpool(
            use_case.execute,
            appointment_id=req.appointment_id,
            contact_id=req.contact_id,
            reason=req.reason,
            comments=req.comments,
        )
    except Exception as e:
        logger.exception("Cancellation failed", extra={"appointment_id": req.appointment_id, "error": str(e)})
        return json_response(
            {"success": False, "error": "Failed to cancel booking", "message": str(e)},
            status_code=500,
        )

    return json_response(
        {"success": True, "message": "Booking cancelled successfully", "appointmentId": req.appointment_id}
    )
