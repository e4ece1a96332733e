"""Tests for status-check parsing."""

import pytest

from lens.enhancement.status import parse_status, to_flag, to_int


class TestToInt:
    """Lenient counter parsing."""

    @pytest.mark.parametrize(
        "value, expected",
        [(5, 5), ("7", 7), (" 3 ", 3), ("4.0", 4), (2.9, 2), (None, 0), ("abc", 0), (True, 0), (float("inf"), 0), ("nan", 0)],
    )
    def test_values(self, value, expected):
        assert to_int(value) == expected


class TestToFlag:
    """Boolean flags as sent by SQL-backed workflows."""

    @pytest.mark.parametrize("value", [True, "true", "t", "TRUE", " t "])
    def test_true(self, value):
        assert to_flag(value)

    @pytest.mark.parametrize("value", [False, "false", "f", None, 1, "yes"])
    def test_false(self, value):
        assert not to_flag(value)


class TestParseStatus:
    """Counter record extraction."""

    def test_snake_case(self):
        status = parse_status(
            {
                "total_chunks": 10,
                "terminated_chunks": 4,
                "success_chunks": 3,
                "failed_chunks": 1,
                "pending_chunks": 5,
                "processing_chunks": 1,
                "embedded_chunks": 0,
            }
        )
        assert status.total_units == 10
        assert status.terminated_units == 4
        assert status.succeeded_units == 3
        assert status.failed_units == 1
        assert status.pending_units == 5
        assert status.processing_units == 1
        assert not status.all_terminated

    def test_camel_case_strings_in_list_envelope(self):
        status = parse_status([{"json": {"totalChunks": "12", "terminatedChunks": "6", "embeddedChunks": "2"}}])
        assert status.total_units == 12
        assert status.terminated_units == 6
        assert status.published_units == 2

    def test_flag_string(self):
        assert parse_status({"total_chunks": 3, "terminated_chunks": 1, "all_terminated": "t"}).all_terminated

    def test_derived_all_terminated(self):
        assert parse_status({"total_chunks": 3, "terminated_chunks": 3}).all_terminated

    def test_unknown_total_never_terminal(self):
        assert not parse_status({"total_chunks": 0, "terminated_chunks": 0}).all_terminated

    def test_missing_counters_default_to_zero(self):
        status = parse_status({})
        assert status.total_units == 0
        assert status.terminated_units == 0

    def test_negative_counters_floored(self):
        assert parse_status({"total_chunks": -4}).total_units == 0

    @pytest.mark.parametrize("data", [None, [], "oops", 42, [None]])
    def test_not_a_record(self, data):
        assert parse_status(data) is None
