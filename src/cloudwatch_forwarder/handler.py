"""
AWS Lambda entry point.

Subscribe the function to a log group; each invocation forwards one
payload with a fresh HTTP session and returns the forwarding summary.
"""

import asyncio
from typing import Any, Dict

import structlog

from .config import Settings, get_settings
from .core.forwarder import CloudWatchForwarder
from .core.sender import IngestionSender
from .log_config import configure_logging

logger = structlog.get_logger(__name__)


async def forward_event(event: Any, settings: Settings, request_id: str = "") -> Dict[str, Any]:
    """Forward a single subscription event and return the result as a dict."""
    async with IngestionSender(settings.destination) as sender:
        forwarder = CloudWatchForwarder(settings, sender=sender)
        result = await forwarder.push(event, request_id=request_id or None)
    return result.to_dict()


def lambda_handler(event: Any, context: Any) -> Dict[str, Any]:
    """
    AWS Lambda entry point for a CloudWatch Logs subscription.

    Never raises for bad payloads or rejected batches; the outcome is in
    the returned dict so the invocation is not retried.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    request_id = getattr(context, "aws_request_id", "") or ""
    result = asyncio.run(forward_event(event, settings, request_id=request_id))

    logger.info("Invocation complete", request_id=request_id, **result)
    return result
