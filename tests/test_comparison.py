from __future__ import annotations

import pytest

from attributes import AttributeMap
from comparison import ComparisonReport, ComparisonRow, compare, normalize


class TestCompare:

    def test_rows_cover_union_sorted(self) -> None:
        report = compare({"b": "1", "a": "2"}, {"c": "3", "a": "2"})
        assert report.attributes == ["a", "b", "c"]

    def test_sorting_is_code_point_not_locale(self) -> None:
        report = compare({"b": "", "B": ""}, {"a": "", "É": ""})
        assert report.attributes == ["B", "a", "b", "É"]

    def test_identical_maps_have_no_mismatch(self) -> None:
        m = AttributeMap({"Color": "Red", "Size": "M", "Empty": ""})
        report = compare(m, m)
        assert len(report) == 3
        assert report.mismatch_count == 0

    @pytest.mark.parametrize("user", ["Red", " Red ", "RED", "red\n"])
    def test_case_and_edge_whitespace_are_tolerated(self, user: str) -> None:
        (row,) = compare({"Color": user}, {"Color": "red"}).rows
        assert row.is_mismatch is False
        assert row.user_value == user
        assert row.reference_value == "red"

    def test_different_content_is_a_mismatch(self) -> None:
        report = compare({"Color": "Red"}, {"Color": "Blue"})
        assert report.rows == (ComparisonRow("Color", "Red", "Blue", True),)

    def test_inner_whitespace_still_counts(self) -> None:
        (row,) = compare({"Model": "X 1"}, {"Model": "X1"}).rows
        assert row.is_mismatch is True

    def test_missing_reference_is_empty(self) -> None:
        report = compare({"Size": "M"}, {})
        assert report.to_records() == [
            {"attribute": "Size", "userValue": "M", "referenceValue": "", "isMismatch": True},
        ]

    def test_missing_user_value_is_empty(self) -> None:
        (row,) = compare({}, {"Weight": "2kg"}).rows
        assert row == ComparisonRow("Weight", "", "2kg", True)

    def test_both_blank_is_not_a_mismatch(self) -> None:
        (row,) = compare({"Finish": "  "}, {"Finish": ""}).rows
        assert row.is_mismatch is False

    def test_empty_inputs(self) -> None:
        report = compare({}, {})
        assert report == ComparisonReport()
        assert len(report) == 0


class TestReport:

    def test_mismatches_filter_keeps_report(self) -> None:
        report = compare({"Color": "Red", "Size": "M"}, {"Color": "red ", "Size": "L"})
        assert [r.attribute for r in report.mismatches()] == ["Size"]
        assert len(report) == 2

    def test_rows_are_frozen(self) -> None:
        report = compare({"a": "1"}, {"a": "1"})
        with pytest.raises(AttributeError):
            report.rows[0].user_value = "2"

    def test_normalize(self) -> None:
        assert normalize("  MiXed ") == "mixed"
