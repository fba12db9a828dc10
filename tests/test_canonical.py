"""Unit tests for display defaults and Instance Number ordering."""

from typing import Any

import pytest

from dicomgate.services.dicomweb.canonical import (
    DISPLAY_DEFAULTS,
    apply_default,
    fix_response,
    sort_by_instance_number,
)


def _instance(number: Any) -> dict[str, Any]:
    return {"00200013": {"vr": "IS", "Value": [number]}}


class TestApplyDefault:
    """Test single-attribute defaulting."""

    def test_fills_missing_attribute(self) -> None:
        record: dict[str, Any] = {}
        apply_default(record, "00281050", "DS", "100.0")
        assert record["00281050"] == {"Value": ["100.0"], "vr": "DS"}

    def test_fills_attribute_without_value(self) -> None:
        record: dict[str, Any] = {"00281050": {"vr": "DS"}}
        apply_default(record, "00281050", "DS", "100.0")
        assert record["00281050"]["Value"] == ["100.0"]

    def test_fills_null_value(self) -> None:
        record: dict[str, Any] = {"00281050": {"vr": "DS", "Value": None}}
        apply_default(record, "00281050", "DS", "100.0")
        assert record["00281050"]["Value"] == ["100.0"]

    def test_keeps_empty_value_list(self) -> None:
        record: dict[str, Any] = {"00281050": {"vr": "DS", "Value": []}}
        apply_default(record, "00281050", "DS", "100.0")
        assert record["00281050"] == {"vr": "DS", "Value": []}

    def test_keeps_existing_value(self) -> None:
        record: dict[str, Any] = {"00281050": {"vr": "DS", "Value": [40]}}
        apply_default(record, "00281050", "DS", "100.0")
        assert record["00281050"]["Value"] == [40]

    def test_returns_same_record(self) -> None:
        record: dict[str, Any] = {}
        assert apply_default(record, "00281053", "DS", "1.0") is record


class TestFixResponse:
    """Test defaulting over a whole result set."""

    def test_adds_all_display_defaults(self) -> None:
        (record,) = fix_response([{}])
        for tag, vr, value in DISPLAY_DEFAULTS:
            assert record[tag] == {"Value": [value], "vr": vr}

    def test_window_and_rescale_values(self) -> None:
        (record,) = fix_response([{}])
        assert record["00281050"]["Value"] == ["100.0"]
        assert record["00281051"]["Value"] == ["100.0"]
        assert record["00281052"]["Value"] == ["1.0"]
        assert record["00281053"]["Value"] == ["1.0"]

    def test_preserves_order_and_length(self) -> None:
        records = [_instance(3), _instance(1), {}]
        fixed = fix_response(records)
        assert len(fixed) == 3
        assert [r.get("00200013") for r in fixed] == [r.get("00200013") for r in records]

    def test_empty(self) -> None:
        assert fix_response([]) == []


class TestSortByInstanceNumber:
    """Test stable ordering by Instance Number."""

    def test_sorts_numeric_strings(self) -> None:
        records = [_instance("3"), _instance("1"), _instance("2")]
        result = sort_by_instance_number(records)
        assert [r["00200013"]["Value"][0] for r in result] == ["1", "2", "3"]

    def test_sorts_numerically_not_lexically(self) -> None:
        records = [_instance("10"), _instance("9")]
        result = sort_by_instance_number(records)
        assert [r["00200013"]["Value"][0] for r in result] == ["9", "10"]

    def test_accepts_integers(self) -> None:
        records = [_instance(5), _instance(2)]
        assert [r["00200013"]["Value"][0] for r in sort_by_instance_number(records)] == [2, 5]

    def test_missing_sorts_as_zero_and_is_stable(self) -> None:
        a: dict[str, Any] = {"marker": {"Value": ["a"]}}
        b: dict[str, Any] = {"00200013": {"vr": "IS"}}
        c = _instance("x")
        one = _instance("1")
        result = sort_by_instance_number([one, a, b, c])
        assert result == [a, b, c, one]

    @pytest.mark.parametrize(("value", "rank"), [("7abc", 7), (" 4", 4), ("-2", -2)])
    def test_leading_integer_is_used(self, value: str, rank: int) -> None:
        records = [_instance("0"), _instance(value)]
        result = sort_by_instance_number(records)
        expected_first = value if rank < 0 else "0"
        assert result[0]["00200013"]["Value"][0] == expected_first

    def test_sorts_in_place(self) -> None:
        records = [_instance("2"), _instance("1")]
        assert sort_by_instance_number(records) is records
