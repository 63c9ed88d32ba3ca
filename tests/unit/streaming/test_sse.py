"""Tests for event-stream record decoding."""

from __future__ import annotations

import json
import logging

import pytest

from scene_stream.streaming.sse import (
    SSERecord,
    decode_line,
    error_message,
    extract_content,
)


def data_line(envelope: object) -> str:
    return f"data: {json.dumps(envelope)}"


class TestExtractContent:
    def test_delta_content(self) -> None:
        envelope = {"choices": [{"delta": {"content": "Hello"}}]}
        assert extract_content(envelope) == "Hello"

    @pytest.mark.parametrize(
        "envelope",
        [
            None,
            [],
            {},
            {"choices": []},
            {"choices": "x"},
            {"choices": [None]},
            {"choices": [{"delta": None}]},
            {"choices": [{"delta": {"role": "assistant"}}]},
            {"choices": [{"delta": {"content": ""}}]},
            {"choices": [{"delta": {"content": 3}}]},
        ],
    )
    def test_absent_content(self, envelope: object) -> None:
        assert extract_content(envelope) is None


class TestDecodeLine:
    def test_content_record(self) -> None:
        line = data_line({"choices": [{"delta": {"content": " the"}}]})
        assert decode_line(line) == SSERecord(content=" the")

    def test_done_record(self) -> None:
        assert decode_line("data: [DONE]") == SSERecord(done=True)

    def test_prefix_without_space(self) -> None:
        assert decode_line("data:[DONE]") == SSERecord(done=True)

    @pytest.mark.parametrize("line", ["", "   ", ": keep-alive", "event: message", "id: 4"])
    def test_non_records_ignored(self, line: str) -> None:
        assert decode_line(line) is None

    def test_role_only_chunk_is_empty_record(self) -> None:
        record = decode_line(data_line({"choices": [{"delta": {"role": "assistant"}}]}))
        assert record == SSERecord()

    def test_malformed_json_skipped_and_logged(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            assert decode_line('data: {"choices": [{"del') is None
        assert "Skipping malformed stream record" in caplog.text

    def test_error_envelope(self) -> None:
        record = decode_line(data_line({"error": {"message": "overloaded"}}))
        assert record == SSERecord(error="overloaded")

    def test_error_envelope_without_message(self) -> None:
        record = decode_line(data_line({"error": {}}))
        assert record is not None
        assert record.error == "Unknown stream error"

    def test_string_error_envelope(self) -> None:
        record = decode_line(data_line({"error": "The server is overloaded"}))
        assert record == SSERecord(error="The server is overloaded")

    @pytest.mark.parametrize("error", [None, ""])
    def test_empty_error_field_is_not_an_error(self, error: object) -> None:
        line = data_line({"error": error, "choices": [{"delta": {"content": "a"}}]})
        assert decode_line(line) == SSERecord(content="a")


class TestErrorMessage:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            ({"message": "model overloaded"}, "model overloaded"),
            ({"message": ""}, "Unknown stream error"),
            ({}, "Unknown stream error"),
            ("quota exhausted", "quota exhausted"),
        ],
    )
    def test_message_forms(self, error: object, expected: str) -> None:
        assert error_message(error) == expected
