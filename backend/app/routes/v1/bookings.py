# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic, including authorization, is delegated to BookingService.

Endpoints:
    POST /check-availability - Check if a mentor is free for a window
    POST /manage - Confirm, complete or cancel by action name
    GET / - List the caller's bookings
    POST / - Request a session
    GET /{booking_id} - Booking details (participants only)
    POST /{booking_id}/confirm - Mentor confirms
    POST /{booking_id}/complete - Mentor marks as held
    POST /{booking_id}/cancel - Either participant cancels
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import (
    get_availability_service,
    get_booking_service,
    get_optional_principal,
)
from ...principal import Principal
from ...schemas.base import DataResponse
from ...schemas.booking import (
    AvailabilityCheckRequest,
    AvailabilityResponse,
    BookingCreate,
    BookingResponse,
    CancelSessionRequest,
    CompleteSessionRequest,
    ConflictWindow,
    ManageSessionRequest,
)
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def _booking_envelope(booking) -> DataResponse[BookingResponse]:
    return DataResponse[BookingResponse](data=BookingResponse.model_validate(booking))


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post("/check-availability", response_model=AvailabilityResponse)
async def check_availability(
    payload: AvailabilityCheckRequest = Body(...),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Report whether the mentor is free for ``[session_time, session_time + duration)``."""
    result = await asyncio.to_thread(
        availability_service.check_availability,
        payload.mentor_id,
        payload.session_time,
        payload.duration,
    )
    return AvailabilityResponse(
        available=result.available,
        session_time=result.start,
        end_time=result.end,
        conflicts=[ConflictWindow.model_validate(b) for b in result.conflicts],
    )


@router.post("/manage", response_model=DataResponse[BookingResponse])
async def manage_session(
    payload: ManageSessionRequest = Body(...),
    principal: Optional[Principal] = Depends(get_optional_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> DataResponse[BookingResponse]:
    """Dispatch confirm / complete / cancel on a session."""
    booking = await asyncio.to_thread(
        booking_service.manage_session,
        principal,
        payload.session_id,
        payload.action,
        payload.payment_status,
        payload.refund,
    )
    return _booking_envelope(booking)


@router.get("", response_model=DataResponse[List[BookingResponse]])
async def list_bookings(
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: Optional[int] = Query(None, ge=1),
    principal: Optional[Principal] = Depends(get_optional_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> DataResponse[List[BookingResponse]]:
    """Caller's bookings, newest session first."""
    bookings = await asyncio.to_thread(
        booking_service.list_bookings, principal, status_filter, limit
    )
    return DataResponse[List[BookingResponse]](
        data=[BookingResponse.model_validate(b) for b in bookings]
    )


@router.post(
    "",
    response_model=DataResponse[BookingResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    principal: Optional[Principal] = Depends(get_optional_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> DataResponse[BookingResponse]:
    """Request a session with a mentor (students only)."""
    booking = await asyncio.to_thread(
        lambda: booking_service.create_booking(
            principal,
            mentor_id=booking_data.mentor_id,
            session_time=booking_data.session_time,
            duration=booking_data.duration,
            session_type=booking_data.session_type,
            message=booking_data.message,
        )
    )
    return _booking_envelope(booking)


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters - placed last)
# ============================================================================


@router.get("/{booking_id}", response_model=DataResponse[BookingResponse])
async def get_booking(
    booking_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> DataResponse[BookingResponse]:
    booking = await asyncio.to_thread(booking_service.get_booking, principal, booking_id)
    return _booking_envelope(booking)


@router.post("/{booking_id}/confirm", response_model=DataResponse[BookingResponse])
async def confirm_booking(
    booking_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> DataResponse[BookingResponse]:
    booking = await asyncio.to_thread(booking_service.confirm_booking, principal, booking_id)
    return _booking_envelope(booking)


@router.post("/{booking_id}/complete", response_model=DataResponse[BookingResponse])
async def complete_booking(
    booking_id: str,
    payload: CompleteSessionRequest = Body(...),
    principal: Optional[Principal] = Depends(get_optional_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> DataResponse[BookingResponse]:
    booking = await asyncio.to_thread(
        booking_service.complete_booking, principal, booking_id, payload.payment_status
    )
    return _booking_envelope(booking)


@router.post("/{booking_id}/cancel", response_model=DataResponse[BookingResponse])
async def cancel_booking(
    booking_id: str,
    payload: Optional[CancelSessionRequest] = Body(None),
    principal: Optional[Principal] = Depends(get_optional_principal),
    booking_service: BookingService = Depends(get_booking_service),
) -> DataResponse[BookingResponse]:
    refund = payload.refund if payload else False
    booking = await asyncio.to_thread(
        booking_service.cancel_booking, principal, booking_id, refund
    )
    return _booking_envelope(booking)
