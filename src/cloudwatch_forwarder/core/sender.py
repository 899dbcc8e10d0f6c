"""
Async HTTP sender for the log-ingestion endpoint.

Posts one JSON array of records per call with a static bearer token.
No retries: a failed batch is reported back to the caller.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp
import structlog

from ..config import DestinationSettings
from .metrics import MetricsCollector

logger = structlog.get_logger(__name__)


@dataclass
class DeliveryResult:
    """Result of a single batch delivery."""
    success: bool
    entries_sent: int
    status_code: Optional[int] = None
    error_message: Optional[str] = None


class IngestionSender:
    """
    Sends record batches to the ingestion endpoint.

    The aiohttp session is created on first use unless one is injected;
    injected sessions belong to the caller and are left open on stop().
    """

    def __init__(
        self,
        settings: DestinationSettings,
        session: Optional[aiohttp.ClientSession] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.settings = settings
        self.metrics = metrics
        self.session = session
        self._owns_session = session is None

        logger.info("Ingestion sender initialized", ingestion_url=settings.ingestion_url)

    async def start(self) -> None:
        """Open the HTTP session if there is none."""
        if self.session is not None:
            return

        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.settings.timeout_seconds)
        )
        self._owns_session = True
        logger.debug("Ingestion sender session opened")

    async def stop(self) -> None:
        """Close the HTTP session if this sender opened it."""
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None
            logger.debug("Ingestion sender session closed")

    async def __aenter__(self) -> "IngestionSender":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.source_token}",
            "Content-Type": "application/json",
            "User-Agent": self.settings.user_agent,
        }

    async def send(self, records: List[Dict[str, Any]]) -> DeliveryResult:
        """
        Post records as a single JSON array.

        Returns:
            DeliveryResult; success means the endpoint answered 2xx
        """
        if not records:
            return DeliveryResult(success=True, entries_sent=0)

        await self.start()

        start_time = time.monotonic()
        status_code: Optional[int] = None

        try:
            async with self.session.post(
                self.settings.ingestion_url,
                json=records,
                headers=self._headers(),
            ) as response:
                status_code = response.status
                if 200 <= response.status < 300:
                    logger.info(
                        "Batch delivered",
                        status=response.status,
                        entries_count=len(records),
                    )
                    return DeliveryResult(
                        success=True,
                        entries_sent=len(records),
                        status_code=response.status,
                    )

                error_text = await response.text(errors="replace")
                logger.error(
                    "Ingestion endpoint returned error",
                    status=response.status,
                    error=error_text[:512],
                    entries_count=len(records),
                )
                return DeliveryResult(
                    success=False,
                    entries_sent=0,
                    status_code=response.status,
                    error_message=f"HTTP {response.status}: {error_text[:512]}",
                )

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(
                "Batch delivery failed",
                error=str(e),
                error_type=type(e).__name__,
                entries_count=len(records),
            )
            return DeliveryResult(
                success=False,
                entries_sent=0,
                error_message=str(e) or type(e).__name__,
            )

        finally:
            if self.metrics:
                self.metrics.record_ingestion_request(
                    status_code=status_code,
                    duration_seconds=time.monotonic() - start_time,
                    entries_count=len(records),
                )
