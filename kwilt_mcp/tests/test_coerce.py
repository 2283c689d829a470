import math

import pytest

from kwilt_mcp.core.coerce import as_int, as_string, clamp, truncate
from kwilt_mcp.mcp.arguments import ListTasksArgs, SetStatusArgs


class TestAsString:
    def test_trims(self):
        assert as_string("  task-1 ") == "task-1"

    @pytest.mark.parametrize("value", ["", "   ", None, 5, ["a"], {"a": 1}])
    def test_blank_or_non_string_is_none(self, value):
        assert as_string(value) is None


class TestAsInt:
    @pytest.mark.parametrize(
        "value, expected",
        [(7, 7), (7.9, 7), (-1.5, -2), ("12", 12), (" 3.99 ", 3)],
    )
    def test_floors_numbers(self, value, expected):
        assert as_int(value) == expected

    @pytest.mark.parametrize("value", [True, False, None, "abc", math.nan, math.inf, [1]])
    def test_non_numeric_is_none(self, value):
        assert as_int(value) is None


def test_clamp_and_truncate():
    assert clamp(0, 1, 100) == 1
    assert clamp(101, 1, 100) == 100
    assert clamp(50, 1, 100) == 50
    assert truncate("abcdef", 3) == "abc"
    assert truncate("ab", 3) == "ab"


class TestArgumentModels:
    def test_unknown_fields_and_wrong_types_are_tolerated(self):
        args = SetStatusArgs.parse({"task_id": 99, "status": " DONE ", "extra": {"x": 1}})
        assert args.task_id is None
        assert args.status == "DONE"

    def test_status_list_drops_blanks(self):
        args = ListTasksArgs.parse({"execution_target_id": "t", "status": ["READY", " ", 3, "DONE"]})
        assert args.status == ["READY", "DONE"]

    def test_status_string_becomes_list(self):
        assert ListTasksArgs.parse({"status": "BLOCKED"}).status == ["BLOCKED"]

    def test_handed_off_flag_only_rejected_when_present(self):
        assert ListTasksArgs.parse({}).handed_off_view_rejected is False
        assert ListTasksArgs.parse({"handed_off_to_cursor": True}).handed_off_view_rejected is False
        assert ListTasksArgs.parse({"handed_off_to_cursor": False}).handed_off_view_rejected is True

    def test_non_object_arguments(self):
        assert ListTasksArgs.parse("nope").execution_target_id is None
