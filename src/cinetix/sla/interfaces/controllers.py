"""
SLA Controllers (API Routes)
=============================

FastAPI routes for SLA countdown and escalation endpoints.

Controllers are thin - they delegate to application services.
"""

import json
from typing import AsyncIterator, Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from cinetix.config import settings
from cinetix.core import ResourceNotFoundException
from cinetix.infrastructure.database import get_session
from cinetix.sla.application import (
    SLACountdownService, EscalationRunResult,
    SLASettingsResponse, TicketSLAResponse, OpenTicketsResponse,
    EscalationRunResponse, CountdownResponse
)
from cinetix.sla.services import SLAComponents, run_escalation_check
from cinetix.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/sla", tags=["SLA Monitoring"])


# ========== Example payloads for Swagger ==========

TICKET_SLA_RESPONSE_EXAMPLE = {
    "ticket_id": "5b0c6f2e-8f55-4a8e-a9a4-1f5d0c2b7e11",
    "subject": "Seat map not loading for Screen 3",
    "priority": "urgent",
    "status": "open",
    "organization_name": "Roxy Cinema",
    "created_at": "2026-10-17T09:00:00Z",
    "first_response_at": None,
    "sla_breached": False,
    "target_hours": 2,
    "deadline": "2026-10-17T11:00:00Z",
    "countdown": {
        "time_remaining": "25m 10s",
        "is_breached": False,
        "is_warning": True,
        "percent_remaining": 20.97,
        "remaining_seconds": 1510,
        "target_hours": 2,
        "is_active": True,
        "state": "warning"
    },
    "response_badge": None,
    "indicator": {
        "label": "25m left",
        "hours_elapsed": 1,
        "is_breached": False,
        "is_warning": True
    }
}

ESCALATION_RUN_EXAMPLE = {
    "checked_at": "2026-10-17T12:00:00Z",
    "tickets_checked": 4,
    "breaches_detected": 1,
    "breaches_flagged": 1,
    "notifications_sent": 1,
    "notifications_failed": 0,
    "skipped_reason": None,
    "escalated_ticket_ids": ["5b0c6f2e-8f55-4a8e-a9a4-1f5d0c2b7e11"]
}


# ========== Dependencies ==========

def get_sla_components(request: Request) -> SLAComponents:
    """Get the process-wide SLA collaborators created at startup."""
    components = getattr(request.app.state, "sla_components", None)
    if components is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="SLA service not initialized"
        )
    return components


async def get_countdown_service(
    session: AsyncSession = Depends(get_session),
    components: SLAComponents = Depends(get_sla_components)
) -> SLACountdownService:
    """Get countdown service bound to the request session."""
    return components.countdown_service(session)


def get_stream_countdown_service(
    components: SLAComponents = Depends(get_sla_components)
) -> SLACountdownService:
    """
    Get countdown service for streams.

    Streams outlive the request, so the service reads through a short
    session per refresh instead of holding one for the whole stream.
    """
    return components.streaming_countdown_service()


def get_escalation_runner(
    components: SLAComponents = Depends(get_sla_components)
) -> Callable[[], Awaitable[EscalationRunResult]]:
    """Get a callable that runs one escalation check."""
    async def run() -> EscalationRunResult:
        return await run_escalation_check(components)

    return run


# ========== Route Handlers ==========

@router.get(
    "/settings",
    response_model=SLASettingsResponse,
    summary="Get SLA settings",
    description="Target first-response hours per priority and the escalation settings."
)
async def get_sla_settings(
    sla_service: SLACountdownService = Depends(get_countdown_service)
):
    sla_settings = await sla_service.get_settings()
    return SLASettingsResponse.from_settings(sla_settings)


@router.get(
    "/tickets",
    response_model=OpenTicketsResponse,
    summary="List open tickets with SLA countdowns",
    description="""
    Open and in-progress tickets, oldest first, each with its countdown,
    response badge and hour indicator.

    **Countdown states:**
    - `counting`: more than 25% of the target left
    - `warning`: 25% or less of the target left
    - `breached`: target passed with no first response
    - `inactive`: ticket already has a first response
    """
)
async def list_open_tickets(
    limit: int = Query(100, ge=1, le=1000, description="Results per page"),
    offset: int = Query(0, ge=0, description="Page offset"),
    sla_service: SLACountdownService = Depends(get_countdown_service)
):
    views = await sla_service.list_open_ticket_slas(limit=limit, offset=offset)
    return OpenTicketsResponse.from_views(views)


@router.get(
    "/tickets/{ticket_id}",
    response_model=TicketSLAResponse,
    summary="Get ticket SLA status",
    responses={
        200: {
            "description": "Ticket SLA information",
            "content": {
                "application/json": {
                    "example": TICKET_SLA_RESPONSE_EXAMPLE
                }
            }
        },
        404: {
            "description": "Ticket not found"
        }
    }
)
async def get_ticket_sla(
    ticket_id: str,
    sla_service: SLACountdownService = Depends(get_countdown_service)
):
    try:
        view = await sla_service.get_ticket_sla(ticket_id)
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

    return TicketSLAResponse.from_view(view)


@router.get(
    "/tickets/{ticket_id}/countdown/stream",
    summary="Stream a ticket's countdown",
    description="""
    Server-sent events, one `countdown` event per second. The stream ends
    after the first inactive countdown (response recorded or ticket closed).
    """,
    responses={404: {"description": "Ticket not found"}}
)
async def stream_ticket_countdown(
    ticket_id: str,
    max_ticks: Optional[int] = Query(None, ge=1, description="Stop after this many events"),
    sla_service: SLACountdownService = Depends(get_stream_countdown_service)
):
    try:
        await sla_service.get_ticket_sla(ticket_id)
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

    async def events() -> AsyncIterator[str]:
        try:
            async for countdown in sla_service.stream_countdown(
                ticket_id,
                tick_seconds=settings.sla_countdown_tick_seconds,
                max_ticks=max_ticks
            ):
                payload = CountdownResponse.from_countdown(countdown).model_dump()
                yield f"event: countdown\ndata: {json.dumps(payload)}\n\n"
        except ResourceNotFoundException:
            logger.info("Ticket disappeared during countdown stream", extra={"ticket_id": ticket_id})

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"}
    )


@router.post(
    "/escalations/run",
    response_model=EscalationRunResponse,
    summary="Run the breach escalation check now",
    description="""
    Runs the same check as the once-a-minute background job: flags tickets
    past their first-response target and sends one escalation per breach.
    """,
    responses={
        200: {
            "description": "Escalation run summary",
            "content": {
                "application/json": {
                    "example": ESCALATION_RUN_EXAMPLE
                }
            }
        }
    }
)
async def run_escalations(
    run: Callable[[], Awaitable[EscalationRunResult]] = Depends(get_escalation_runner)
):
    result = await run()
    return EscalationRunResponse.from_result(result)


# Export router for inclusion in main app
sla_router = router
