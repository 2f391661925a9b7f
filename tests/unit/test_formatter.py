"""Tests for completion_logger.formatter."""

import re

import pytest

from completion_logger.formatter import (
    SEVERITY_TABLE,
    Treatment,
    format_bytes,
    format_completion,
    format_duration,
    format_record,
    format_size,
    format_start,
    outcome_glyph,
    severity_bucket,
    status_treatment,
)
from completion_logger.models import CompletionRecord, OutcomeKind

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


class TestSeverityBucket:
    @pytest.mark.parametrize(
        "status, bucket",
        [(200, 2), (204, 2), (404, 4), (500, 5), (301, 3), (101, 1), (799, 7)],
    )
    def test_hundreds_digit(self, status: int, bucket: int) -> None:
        assert severity_bucket(status) == bucket

    @pytest.mark.parametrize("status", [600, 999, 1234, -1, 42])
    def test_unmapped_falls_back_to_default(self, status: int) -> None:
        assert severity_bucket(status) == 0
        assert status_treatment(status) is Treatment.WARNING

    def test_treatments(self) -> None:
        assert status_treatment(500) is Treatment.ALERT
        assert status_treatment(404) is Treatment.WARNING
        assert status_treatment(302) is Treatment.REDIRECT
        assert status_treatment(201) is Treatment.SUCCESS
        assert status_treatment(100) is Treatment.SUCCESS
        assert status_treatment(700) is Treatment.SPECIAL

    def test_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            SEVERITY_TABLE[6] = Treatment.ALERT  # type: ignore[index]


class TestSize:
    @pytest.mark.parametrize("status", [204, 205, 304])
    def test_bodiless_statuses_render_empty(self, status: int) -> None:
        assert format_size(status, 500) == ""
        assert format_size(status, None) == ""

    def test_unknown_size_is_dash(self) -> None:
        assert format_size(200, None) == "-"

    def test_known_size_is_humanized(self) -> None:
        assert format_size(200, 2048) == "2kb"

    @pytest.mark.parametrize(
        "size, text",
        [
            (0, "0b"),
            (128, "128b"),
            (1023, "1023b"),
            (1024, "1kb"),
            (1536, "1.5kb"),
            (1100, "1.07kb"),
            (1024 * 1024, "1mb"),
            (5 * 1024 ** 3, "5gb"),
        ],
    )
    def test_format_bytes(self, size: int, text: str) -> None:
        assert format_bytes(size) == text


class TestDuration:
    @pytest.mark.parametrize(
        "ms, text",
        [
            (0, "0ms"),
            (12, "12ms"),
            (9999, "9999ms"),
            (10000, "10s"),
            (10500, "11s"),
            (25499, "25s"),
            (61000, "61s"),
        ],
    )
    def test_threshold_and_rounding(self, ms: int, text: str) -> None:
        assert format_duration(ms) == text


class TestLines:
    def test_start_line(self) -> None:
        assert format_start("GET", "/widgets") == "  <-- GET /widgets"

    def test_completion_line(self) -> None:
        line = format_completion("GET", "/widgets", 201, 12, 128, OutcomeKind.FINISH)
        assert line == "  --> GET /widgets 201 12ms 128b"

    def test_close_and_error_glyphs(self) -> None:
        assert format_completion("GET", "/a", 200, 5, None, OutcomeKind.CLOSE) == "  -x- GET /a 200 5ms -"
        assert format_completion("GET", "/a", 503, 5, None, OutcomeKind.ERROR) == "  xxx GET /a 503 5ms -"
        assert outcome_glyph(OutcomeKind.FINISH) == "-->"

    def test_empty_size_keeps_separator(self) -> None:
        line = format_completion("DELETE", "/widgets/1", 204, 3, 500, OutcomeKind.FINISH)
        assert line == "  --> DELETE /widgets/1 204 3ms "

    def test_format_record(self) -> None:
        record = CompletionRecord(
            method="POST", path="/widgets", status=201, duration_ms=15000, size=2048, outcome=OutcomeKind.FINISH
        )
        assert format_record(record) == "  --> POST /widgets 201 15s 2kb"

    def test_color_adds_ansi_only(self) -> None:
        plain = format_completion("GET", "/x", 500, 7, 10, OutcomeKind.ERROR)
        colored = format_completion("GET", "/x", 500, 7, 10, OutcomeKind.ERROR, color=True)
        assert "\x1b[" in colored
        assert "\x1b[31m500" in colored
        assert ANSI_RE.sub("", colored) == plain

    def test_start_line_color(self) -> None:
        colored = format_start("GET", "/x", color=True)
        assert ANSI_RE.sub("", colored) == "  <-- GET /x"
