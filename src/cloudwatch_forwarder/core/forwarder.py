"""
CloudWatch Logs forwarder.

Runs one subscription payload through the whole pipeline:
- Decode (base64, gzip, JSON envelope)
- Classify and enrich each log event
- Deliver the surviving records as a single batch

One payload in, zero or one outbound request out.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import structlog

from ..config import Settings
from .decoder import decode_payload
from .exceptions import PayloadDecodeError
from .metrics import MetricsCollector
from .sender import IngestionSender
from .transform import EventTransformer

logger = structlog.get_logger(__name__)


@dataclass
class ForwardingResult:
    """Result of forwarding one payload."""
    events_received: int
    events_forwarded: int
    events_skipped: int
    delivered: bool
    status_code: Optional[int] = None
    skipped_reason: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def failed(self) -> bool:
        """True if a batch was sent and not accepted."""
        return self.error_message is not None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CloudWatchForwarder:
    """
    Forwards CloudWatch Logs subscription payloads to the ingestion endpoint.

    Handles:
    - Payload decoding
    - Record classification and enrichment
    - Batch delivery
    """

    def __init__(
        self,
        settings: Settings,
        sender: Optional[IngestionSender] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.settings = settings
        self.metrics = metrics
        self.transformer = EventTransformer(settings.transform)
        self.sender = sender or IngestionSender(settings.destination, metrics=metrics)

        logger.info(
            "CloudWatch forwarder initialized",
            source_name=settings.transform.source_name,
            token=settings.destination.source_token[:8] + "..." if settings.destination.source_token else "unset",
        )

    async def start(self) -> None:
        await self.sender.start()

    async def stop(self) -> None:
        await self.sender.stop()

    async def push(self, payload: Any, request_id: Optional[str] = None) -> ForwardingResult:
        """
        Process a raw subscription payload and forward its records.

        Args:
            payload: The event as delivered, e.g. {"awslogs": {"data": ...}}
            request_id: Optional identifier bound to log lines

        Returns:
            ForwardingResult describing what was sent
        """
        log = logger.bind(request_id=request_id) if request_id else logger

        try:
            envelope = decode_payload(payload)
        except PayloadDecodeError as e:
            log.warning("Payload not forwarded", reason=e.reason, error=str(e), details=e.details)
            self._record(e.reason, forwarded=0, skipped=0)
            return ForwardingResult(
                events_received=0,
                events_forwarded=0,
                events_skipped=0,
                delivered=False,
                skipped_reason=e.reason,
            )

        transformed = self.transformer.transform(envelope)
        events_received = len(envelope.log_events)

        if not transformed.records:
            reason = "control_message" if transformed.control_message else "no_events"
            log.info(
                "No records to forward",
                reason=reason,
                log_group=envelope.log_group,
                events_received=events_received,
                events_skipped=transformed.skipped,
            )
            self._record(reason, forwarded=0, skipped=transformed.skipped)
            return ForwardingResult(
                events_received=events_received,
                events_forwarded=0,
                events_skipped=transformed.skipped,
                delivered=False,
                skipped_reason=reason,
            )

        delivery = await self.sender.send(transformed.records)

        if delivery.success:
            log.info(
                "Payload forwarded",
                log_group=envelope.log_group,
                log_stream=envelope.log_stream,
                events_forwarded=delivery.entries_sent,
                events_skipped=transformed.skipped,
            )
            self._record("delivered", forwarded=delivery.entries_sent, skipped=transformed.skipped)
        else:
            log.error(
                "Payload delivery failed",
                log_group=envelope.log_group,
                status=delivery.status_code,
                error=delivery.error_message,
                records=len(transformed.records),
            )
            self._record("failed", forwarded=0, skipped=transformed.skipped)

        return ForwardingResult(
            events_received=events_received,
            events_forwarded=delivery.entries_sent,
            events_skipped=transformed.skipped,
            delivered=delivery.success,
            status_code=delivery.status_code,
            error_message=delivery.error_message,
        )

    def _record(self, outcome: str, forwarded: int, skipped: int) -> None:
        if self.metrics:
            self.metrics.record_payload(outcome)
            self.metrics.record_events(forwarded=forwarded, skipped=skipped)
