"""
Pytest configuration and shared fixtures.

Contains payload builders, test settings and a fake aiohttp session
used across unit and integration tests.
"""

import base64
import gzip
import json
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

from cloudwatch_forwarder.config import DestinationSettings, Settings, TransformSettings

TEST_TOKEN = "test_source_token_123456789abc"
TEST_INGESTION_URL = "https://ingest.example.test/"


def encode_data(document: Any) -> str:
    """gzip + base64 a JSON document the way CloudWatch does."""
    return base64.b64encode(gzip.compress(json.dumps(document).encode("utf-8"))).decode("ascii")


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse."""

    def __init__(self, status: int, body: Union[str, bytes] = "") -> None:
        self.status = status
        self._body = body.encode("utf-8") if isinstance(body, str) else body

    async def text(self, encoding: Optional[str] = None, errors: str = "strict") -> str:
        return self._body.decode(encoding or "utf-8", errors)

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


class FakeSession:
    """Records POSTs and answers with a fixed status, or raises `error`."""

    def __init__(self, status: int = 202, body: Union[str, bytes] = "", error: Optional[Exception] = None) -> None:
        self.status = status
        self.body = body
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, json: Any = None, headers: Optional[Dict[str, str]] = None) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers or {}})
        if self.error is not None:
            raise self.error
        return FakeResponse(self.status, self.body)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def envelope_factory() -> Callable[..., Dict[str, Any]]:
    """Build a decompressed subscription envelope from raw messages."""
    def _build(
        messages: List[Optional[str]],
        message_type: str = "DATA_MESSAGE",
        log_group: str = "/aws/lambda/client-api",
        log_stream: str = "2025/09/22/[$LATEST]abcdef",
    ) -> Dict[str, Any]:
        events = []
        for index, message in enumerate(messages):
            event: Dict[str, Any] = {
                "id": f"3719584859174728{index:04d}",
                "timestamp": 1758537000000 + index,
            }
            if message is not None:
                event["message"] = message
            events.append(event)

        return {
            "messageType": message_type,
            "owner": "123456789012",
            "logGroup": log_group,
            "logStream": log_stream,
            "subscriptionFilters": ["betterstack"],
            "logEvents": events,
        }
    return _build


@pytest.fixture
def event_factory(envelope_factory: Callable[..., Dict[str, Any]]) -> Callable[..., Dict[str, Any]]:
    """Build a full {"awslogs": {"data": ...}} event from raw messages."""
    def _build(messages: List[Optional[str]], **kwargs: Any) -> Dict[str, Any]:
        return {"awslogs": {"data": encode_data(envelope_factory(messages, **kwargs))}}
    return _build


@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at a fake destination."""
    return Settings(
        debug=True,
        log_level="DEBUG",
        destination=DestinationSettings(
            source_token=TEST_TOKEN,
            ingestion_url=TEST_INGESTION_URL,
            timeout_seconds=5,
        ),
        transform=TransformSettings(source_name="Client-API-01"),
    )


@pytest.fixture
def fake_session() -> FakeSession:
    """Session that accepts every batch with 202."""
    return FakeSession(status=202)


@pytest.fixture
def session_factory() -> Callable[..., FakeSession]:
    """Build sessions with a custom status, body or raised error."""
    return FakeSession
