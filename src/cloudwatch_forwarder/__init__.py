"""
CloudWatch Forwarder - CloudWatch Logs subscription → log-ingestion endpoint

Decodes base64/gzip subscription payloads, turns each log event into a
structured record (JSON messages kept as objects, plain text wrapped),
tags it with a source name and posts the batch with a bearer token.
"""

__version__ = "0.1.0"

from .core.forwarder import CloudWatchForwarder, ForwardingResult

__all__ = ["CloudWatchForwarder", "ForwardingResult"]
