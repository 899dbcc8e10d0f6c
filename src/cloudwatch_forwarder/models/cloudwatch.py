"""
CloudWatch Logs subscription data models.

- Outer event: {"awslogs": {"data": "<base64 of gzipped JSON>"}}
- Envelope: messageType, owner, logGroup, logStream, subscriptionFilters, logEvents
- Log event: id, timestamp (epoch millis), message
"""

import json
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONTROL_MESSAGE = "CONTROL_MESSAGE"


class AwsLogs(BaseModel):
    """The `awslogs` member of a subscription event."""

    data: str = Field(description="Base64-encoded, gzip-compressed envelope")

    model_config = ConfigDict(extra="allow")


class CloudWatchLogsEvent(BaseModel):
    """
    Raw event delivered by a CloudWatch Logs subscription filter.

    `awslogs` is optional so that unrelated invocations can be
    acknowledged without being forwarded.
    """

    awslogs: Optional[AwsLogs] = Field(default=None, description="Compressed log batch")

    model_config = ConfigDict(extra="allow")


def _as_text(v: Any) -> Optional[str]:
    """Coerce a non-string JSON value to text; None stays None."""
    if v is None or isinstance(v, str):
        return v
    return json.dumps(v)


class LogEvent(BaseModel):
    """
    Single log event inside an envelope.

    Only the event itself has to be an object; odd field types are
    coerced rather than failing the whole envelope.
    """

    id: Optional[str] = Field(default=None, description="CloudWatch event id")
    timestamp: Optional[int] = Field(default=None, description="Milliseconds since epoch")
    message: Optional[str] = Field(default=None, description="Raw log line")

    model_config = ConfigDict(extra="allow")

    @field_validator("id", "message", mode="before")
    def coerce_text(cls, v: Any) -> Optional[str]:
        return _as_text(v)

    @field_validator("timestamp", mode="before")
    def coerce_timestamp(cls, v: Any) -> Optional[int]:
        if isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        if isinstance(v, float):
            return int(v) if math.isfinite(v) else None
        if isinstance(v, str):
            try:
                return int(v)
            except ValueError:
                return None
        return None


class LogsEnvelope(BaseModel):
    """Decompressed subscription document."""

    message_type: Optional[str] = Field(default=None, alias="messageType")
    owner: Optional[str] = Field(default=None)
    log_group: Optional[str] = Field(default=None, alias="logGroup")
    log_stream: Optional[str] = Field(default=None, alias="logStream")
    subscription_filters: List[str] = Field(default_factory=list, alias="subscriptionFilters")
    log_events: List[LogEvent] = Field(alias="logEvents")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("message_type", "owner", "log_group", "log_stream", mode="before")
    def coerce_text(cls, v: Any) -> Optional[str]:
        return _as_text(v)

    @field_validator("subscription_filters", mode="before")
    def coerce_filters(cls, v: Any) -> List[str]:
        if not isinstance(v, list):
            return []
        return [item if isinstance(item, str) else json.dumps(item) for item in v]

    @property
    def is_control_message(self) -> bool:
        return self.message_type == CONTROL_MESSAGE


class PushResponse(BaseModel):
    """
    Response from the push endpoint.

    202 Accepted with a summary of what was forwarded.
    """

    message: str = Field(description="Response message")
    events_received: int = Field(description="Log events found in the payload")
    events_forwarded: int = Field(description="Records sent to the ingestion endpoint")
    events_skipped: int = Field(description="Log events dropped by the transform")
    delivered: bool = Field(description="Whether an outbound batch was accepted")
    skipped_reason: Optional[str] = Field(default=None, description="Why nothing was sent")
    request_id: str = Field(description="Unique request identifier")
    timestamp: datetime = Field(description="Processing timestamp")


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    """

    error: str = Field(description="Error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details"
    )
