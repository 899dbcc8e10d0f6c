"""
Log event classification and enrichment.

Turns the events of a decoded envelope into the records that are
forwarded:
1. Drop Lambda runtime lines (START/END/REPORT RequestId: ...)
2. Structured JSON messages become the record itself
3. Anything else is wrapped as {"message": <text>}
4. Every record is tagged with the configured source name
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import structlog

from ..config import TransformSettings
from ..models.cloudwatch import LogEvent, LogsEnvelope

logger = structlog.get_logger(__name__)


@dataclass
class TransformResult:
    """Records produced from one envelope."""
    records: List[Dict[str, Any]] = field(default_factory=list)
    skipped: int = 0
    control_message: bool = False


def _reject_constant(name: str) -> Any:
    # NaN and Infinity would not survive re-serialization as JSON
    raise ValueError(f"non-standard JSON constant {name}")


def parse_message(message: Optional[str]) -> Dict[str, Any]:
    """
    Classify a raw log line.

    Only JSON objects count as structured; scalars and arrays are kept
    as plain text so the record is always a mapping.
    """
    if message is None:
        return {"message": ""}

    try:
        parsed = json.loads(message, parse_constant=_reject_constant)
    except ValueError:
        return {"message": message}

    if isinstance(parsed, dict):
        return parsed
    return {"message": message}


def is_runtime_line(message: Optional[str], markers: Iterable[str]) -> bool:
    """True if the message contains any skip marker."""
    if message is None:
        return False
    return any(marker in message for marker in markers)


def format_timestamp(timestamp: Optional[int]) -> str:
    """Millis since epoch as an ISO-8601 UTC string, empty if unknown."""
    if timestamp is None:
        return ""
    try:
        dt = datetime.fromtimestamp(timestamp // 1000, timezone.utc)
    except (OverflowError, OSError, ValueError):
        return ""
    dt = dt.replace(microsecond=1000 * (timestamp % 1000))
    return dt.isoformat(timespec="milliseconds")


class EventTransformer:
    """
    Applies classification and enrichment to an envelope.

    Stateless apart from its settings; safe to share between invocations.
    """

    def __init__(self, settings: TransformSettings) -> None:
        self.settings = settings

    def transform(self, envelope: LogsEnvelope) -> TransformResult:
        """Build the outbound records for an envelope, preserving event order."""
        if envelope.is_control_message and self.settings.skip_control_messages:
            logger.debug(
                "Skipping control message",
                log_group=envelope.log_group,
                events_count=len(envelope.log_events),
            )
            return TransformResult(skipped=len(envelope.log_events), control_message=True)

        result = TransformResult()

        for event in envelope.log_events:
            if is_runtime_line(event.message, self.settings.skip_markers):
                result.skipped += 1
                continue

            result.records.append(self._build_record(envelope, event))

        logger.debug(
            "Envelope transformed",
            log_group=envelope.log_group,
            records=len(result.records),
            skipped=result.skipped,
        )
        return result

    def _build_record(self, envelope: LogsEnvelope, event: LogEvent) -> Dict[str, Any]:
        record = parse_message(event.message)
        record[self.settings.source_field] = self.settings.source_name

        if self.settings.include_cloudwatch_metadata:
            record["cloudwatch"] = {
                "log_group": envelope.log_group,
                "log_stream": envelope.log_stream,
                "id": event.id,
                "timestamp": format_timestamp(event.timestamp),
            }

        return record
