"""
CloudWatch Logs push endpoint.

Main endpoint: POST /v1/cloudwatch:push
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Body, Depends, Request

from ..core.exceptions import DeliveryError
from ..core.forwarder import CloudWatchForwarder
from ..models.cloudwatch import ErrorResponse, PushResponse

logger = structlog.get_logger(__name__)

router = APIRouter()


async def get_cloudwatch_forwarder(request: Request) -> CloudWatchForwarder:
    """Dependency to get the forwarder from app state."""
    return request.app.state.forwarder


@router.post(
    "/cloudwatch:push",
    response_model=PushResponse,
    status_code=202,
    responses={
        502: {"model": ErrorResponse, "description": "Ingestion endpoint rejected the batch"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Forward a CloudWatch Logs subscription payload",
    description="""
    Accepts the raw subscription event ({"awslogs": {"data": "..."}}).

    **Processing Pipeline:**
    1. base64 decode and gzip decompress
    2. Envelope parsing
    3. Lambda START/END/REPORT lines dropped
    4. JSON messages kept as objects, plain text wrapped as {"message": ...}
    5. Source name added to every record
    6. One batch POSTed to the ingestion endpoint

    Payloads that cannot be decoded, or leave no records, are acknowledged
    with `delivered: false` and a `skipped_reason`.
    """,
)
async def push_cloudwatch_logs(
    payload: Dict[str, Any] = Body(...),
    forwarder: CloudWatchForwarder = Depends(get_cloudwatch_forwarder),
) -> PushResponse:
    """
    Forward one subscription payload.

    """
    request_id = str(uuid.uuid4())
    start_time = datetime.now(timezone.utc)

    result = await forwarder.push(payload, request_id=request_id)

    if result.failed:
        raise DeliveryError(
            "Ingestion endpoint did not accept the batch",
            status_code=result.status_code,
            details={"request_id": request_id, "error": result.error_message},
        )

    logger.info(
        "Push request completed",
        request_id=request_id,
        delivered=result.delivered,
        events_forwarded=result.events_forwarded,
        processing_time_ms=(datetime.now(timezone.utc) - start_time).total_seconds() * 1000,
    )

    if result.delivered:
        message = "Logs forwarded"
    else:
        message = "Nothing forwarded"

    return PushResponse(
        message=message,
        events_received=result.events_received,
        events_forwarded=result.events_forwarded,
        events_skipped=result.events_skipped,
        delivered=result.delivered,
        skipped_reason=result.skipped_reason,
        request_id=request_id,
        timestamp=start_time,
    )
