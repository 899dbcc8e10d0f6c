"""
Tests for subscription payload decoding.

base64 -> gzip -> JSON -> LogsEnvelope, with a reason code per failure.
"""

import base64
import gzip
import json
from typing import Any, Callable, Dict

import pytest

from cloudwatch_forwarder.core.decoder import decode_payload, extract_data
from cloudwatch_forwarder.core.exceptions import PayloadDecodeError


def _wrap(raw: bytes) -> Dict[str, Any]:
    return {"awslogs": {"data": base64.b64encode(raw).decode("ascii")}}


class TestDecodePayload:
    """Test the happy path."""

    def test_decodes_envelope(self, event_factory: Callable[..., Dict[str, Any]]) -> None:
        event = event_factory(["first line", '{"level": "info"}'])

        envelope = decode_payload(event)

        assert envelope.message_type == "DATA_MESSAGE"
        assert envelope.log_group == "/aws/lambda/client-api"
        assert envelope.subscription_filters == ["betterstack"]
        assert [e.message for e in envelope.log_events] == ["first line", '{"level": "info"}']
        assert envelope.log_events[0].timestamp == 1758537000000

    def test_event_without_message(self, event_factory: Callable[..., Dict[str, Any]]) -> None:
        envelope = decode_payload(event_factory([None]))

        assert envelope.log_events[0].message is None

    def test_extra_top_level_keys_ignored(self, event_factory: Callable[..., Dict[str, Any]]) -> None:
        event = event_factory(["hello"])
        event["source"] = "aws.logs"

        assert len(decode_payload(event).log_events) == 1


class TestLenientEventFields:
    """Test that odd field types inside events do not fail the envelope."""

    @staticmethod
    def _decode(document: Dict[str, Any]) -> Any:
        return decode_payload(_wrap(gzip.compress(json.dumps(document).encode())))

    def test_non_string_message_is_coerced(self) -> None:
        envelope = self._decode({
            "messageType": "DATA_MESSAGE",
            "logEvents": [{"id": "1", "message": "ok"}, {"id": 2, "message": 42}],
        })

        assert [e.message for e in envelope.log_events] == ["ok", "42"]
        assert envelope.log_events[1].id == "2"

    def test_object_message_becomes_json_text(self) -> None:
        envelope = self._decode({"logEvents": [{"message": {"level": "info"}}]})

        assert json.loads(envelope.log_events[0].message or "") == {"level": "info"}

    @pytest.mark.parametrize("timestamp, expected", [
        ("1758537000000", 1758537000000),
        (1758537000000.0, 1758537000000),
        ("yesterday", None),
        (True, None),
    ])
    def test_timestamp_is_coerced(self, timestamp: Any, expected: Any) -> None:
        envelope = self._decode({"logEvents": [{"timestamp": timestamp, "message": "x"}]})

        assert envelope.log_events[0].timestamp == expected

    @pytest.mark.parametrize("filters", [None, "betterstack", [1, "named"]])
    def test_subscription_filters_are_lenient(self, filters: Any) -> None:
        envelope = self._decode({"subscriptionFilters": filters, "logEvents": [{"message": "x"}]})

        assert len(envelope.log_events) == 1
        assert all(isinstance(f, str) for f in envelope.subscription_filters)

    def test_non_string_log_group_is_coerced(self) -> None:
        envelope = self._decode({"logGroup": 7, "logEvents": []})

        assert envelope.log_group == "7"


class TestDecodeFailures:
    """Test each failure stage maps to its reason."""

    @pytest.mark.parametrize("payload", [
        {},
        {"awslogs": {}},
        {"awslogs": {"data": ""}},
        {"awslogs": {"data": 42}},
        {"awslogs": "not-a-mapping"},
        ["awslogs"],
        None,
    ])
    def test_missing_data(self, payload: Any) -> None:
        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_payload(payload)

        assert exc_info.value.reason == "missing_data"
        assert exc_info.value.details["reason"] == "missing_data"

    def test_invalid_base64(self) -> None:
        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_payload({"awslogs": {"data": "abc"}})

        assert exc_info.value.reason == "invalid_base64"

    def test_not_gzip(self) -> None:
        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_payload(_wrap(b'{"logEvents": []}'))

        assert exc_info.value.reason == "decompress_failed"

    def test_truncated_gzip(self) -> None:
        compressed = gzip.compress(b'{"logEvents": []}')

        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_payload(_wrap(compressed[:12]))

        assert exc_info.value.reason == "decompress_failed"

    def test_invalid_json(self) -> None:
        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_payload(_wrap(gzip.compress(b"not json at all")))

        assert exc_info.value.reason == "invalid_json"

    def test_invalid_utf8(self) -> None:
        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_payload(_wrap(gzip.compress(b"\xff\xfe\xfa")))

        assert exc_info.value.reason == "invalid_json"

    @pytest.mark.parametrize("document", [
        {"messageType": "DATA_MESSAGE"},
        [1, 2, 3],
        "logEvents",
    ])
    def test_missing_log_events(self, document: Any) -> None:
        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_payload(_wrap(gzip.compress(json.dumps(document).encode())))

        assert exc_info.value.reason == "missing_log_events"

    @pytest.mark.parametrize("log_events", [None, "oops", {"message": "x"}, [1, 2], [{"message": "ok"}, "stray"]])
    def test_malformed_log_events(self, log_events: Any) -> None:
        document = {"messageType": "DATA_MESSAGE", "logEvents": log_events}

        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_payload(_wrap(gzip.compress(json.dumps(document).encode())))

        assert exc_info.value.reason == "invalid_envelope"

    def test_decode_error_is_client_error(self) -> None:
        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_payload({})

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "payload_decode_error"


class TestExtractData:
    """Test awslogs.data lookup."""

    def test_returns_data(self) -> None:
        assert extract_data({"awslogs": {"data": "H4sI"}}) == "H4sI"

    def test_returns_none_without_awslogs(self) -> None:
        assert extract_data({"Records": []}) is None
