"""
Pydantic data models package.

Contains the CloudWatch Logs subscription wire formats and the
HTTP API request/response models.
"""

from .cloudwatch import (
    CONTROL_MESSAGE,
    AwsLogs,
    CloudWatchLogsEvent,
    ErrorResponse,
    LogEvent,
    LogsEnvelope,
    PushResponse,
)

__all__ = [
    "CONTROL_MESSAGE",
    "AwsLogs",
    "CloudWatchLogsEvent",
    "LogEvent",
    "LogsEnvelope",

    # API models
    "PushResponse",
    "ErrorResponse",
]
