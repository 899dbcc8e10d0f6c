"""
Subscription payload decoder.

base64 -> gzip -> JSON -> LogsEnvelope. Every failure is raised as a
PayloadDecodeError carrying a short reason code for logs and metrics.
"""

import base64
import binascii
import gzip
import json
import zlib
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from ..models.cloudwatch import CloudWatchLogsEvent, LogsEnvelope
from .exceptions import PayloadDecodeError

logger = structlog.get_logger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


def extract_data(payload: Any) -> Optional[str]:
    """Return the `awslogs.data` string, or None if the event has none."""
    try:
        event = CloudWatchLogsEvent.model_validate(payload)
    except ValidationError:
        return None
    if event.awslogs is None or not event.awslogs.data:
        return None
    return event.awslogs.data


def decompress(raw: bytes) -> bytes:
    """Gunzip a decoded payload."""
    if not raw.startswith(GZIP_MAGIC):
        raise PayloadDecodeError("Payload is not gzip-compressed", reason="decompress_failed")
    try:
        return gzip.decompress(raw)
    except (OSError, EOFError, zlib.error) as e:
        raise PayloadDecodeError(
            "Failed to decompress payload",
            reason="decompress_failed",
            details={"error": str(e)},
        ) from e


def decode_payload(payload: Any) -> LogsEnvelope:
    """
    Decode a CloudWatch Logs subscription event into its envelope.

    Args:
        payload: The raw event, e.g. {"awslogs": {"data": "H4sI..."}}

    Returns:
        The parsed LogsEnvelope

    Raises:
        PayloadDecodeError: if any decoding stage fails
    """
    data = extract_data(payload)
    if data is None:
        raise PayloadDecodeError("Event has no awslogs.data", reason="missing_data")

    try:
        raw = base64.b64decode(data)
    except (binascii.Error, ValueError) as e:
        raise PayloadDecodeError(
            "awslogs.data is not valid base64",
            reason="invalid_base64",
            details={"error": str(e)},
        ) from e

    decompressed = decompress(raw)

    try:
        document = json.loads(decompressed.decode("utf-8"))
    except ValueError as e:
        raise PayloadDecodeError(
            "Decompressed payload is not valid JSON",
            reason="invalid_json",
            details={"error": str(e)},
        ) from e

    if not isinstance(document, dict) or "logEvents" not in document:
        raise PayloadDecodeError("Envelope has no logEvents", reason="missing_log_events")

    try:
        envelope = LogsEnvelope.model_validate(document)
    except ValidationError as e:
        raise PayloadDecodeError(
            "Envelope does not match the subscription format",
            reason="invalid_envelope",
            details={"errors": e.error_count()},
        ) from e

    logger.debug(
        "Payload decoded",
        message_type=envelope.message_type,
        log_group=envelope.log_group,
        log_stream=envelope.log_stream,
        events_count=len(envelope.log_events),
        compressed_bytes=len(raw),
        decompressed_bytes=len(decompressed),
    )

    return envelope
