"""Unit tests for baseline comparison."""
import json
import logging

import pytest

from well_architected_scanner.core.baseline import compare, compare_scopes, diff, index_baseline
from well_architected_scanner.core.errors import BaselineError
from well_architected_scanner.core.framework import CheckStatus

from conftest import make_definition


def result(check_id, status):
    return make_definition(check_id).create_result(status, "msg")


def ids(changes):
    return {change.check_id for change in changes}


class TestCompare:
    def test_regression_and_new_failure(self):
        comparison = compare(
            [result("RE01", CheckStatus.FAIL), result("RE02", CheckStatus.FAIL)],
            [{"check_id": "RE01", "status": "Pass"}],
        )
        assert ids(comparison.new_failures) == {"RE01", "RE02"}
        assert comparison.improvements == []
        assert comparison.unchanged == []

    def test_improvement(self):
        comparison = compare(
            [result("RE01", CheckStatus.PASS), result("RE02", CheckStatus.FAIL)],
            [{"check_id": "RE01", "status": "Fail"}],
        )
        assert ids(comparison.improvements) == {"RE01"}
        assert ids(comparison.new_failures) == {"RE02"}

    def test_unchanged(self):
        comparison = compare(
            [result("RE01", CheckStatus.FAIL), result("RE02", CheckStatus.PASS)],
            [{"check_id": "RE01", "status": "Fail"}, {"check_id": "RE02", "status": "Pass"}],
        )
        assert ids(comparison.unchanged) == {"RE01", "RE02"}
        assert comparison.new_failures == comparison.improvements == []

    def test_brand_new_pass_or_warning_not_reported(self):
        comparison = compare(
            [result("RE01", CheckStatus.PASS), result("RE02", CheckStatus.WARNING)],
            [],
        )
        assert comparison.new_failures == []
        assert comparison.improvements == []
        assert comparison.unchanged == []
        assert comparison.unclassified == []

    def test_pass_to_warning_is_new_failure(self):
        comparison = compare([result("RE01", CheckStatus.WARNING)],
                             [{"check_id": "RE01", "status": "Pass"}])
        assert ids(comparison.new_failures) == {"RE01"}

    def test_non_pass_transitions_are_unclassified(self):
        comparison = compare(
            [result("RE01", CheckStatus.ERROR), result("RE02", CheckStatus.FAIL),
             result("RE03", CheckStatus.ERROR)],
            [{"check_id": "RE01", "status": "Warning"}, {"check_id": "RE02", "status": "Error"},
             {"check_id": "RE03", "status": "Pass"}],
        )
        assert ids(comparison.unclassified) == {"RE01", "RE02", "RE03"}
        assert comparison.new_failures == []
        assert comparison.improvements == []
        assert comparison.unchanged == []

    def test_first_baseline_entry_wins(self):
        records = [
            {"check_id": "RE01", "status": "Pass"},
            {"check_id": "RE01", "status": "Fail"},
        ]
        assert index_baseline(records) == {"RE01": CheckStatus.PASS}

    def test_alternate_field_names_and_case(self):
        records = [{"checkId": "RE01", "status": "FAIL"}, {"CheckId": "RE02", "Status": "pass"}]
        assert index_baseline(records) == {"RE01": CheckStatus.FAIL, "RE02": CheckStatus.PASS}

    def test_records_without_id_or_status_are_skipped(self):
        records = [{"status": "Pass"}, {"check_id": "RE01", "status": "Bogus"}, "junk"]
        assert index_baseline(records) == {}

    def test_change_records_previous_status(self):
        comparison = compare([result("RE01", CheckStatus.PASS)],
                             [{"check_id": "RE01", "status": "Fail"}])
        change = comparison.improvements[0]
        assert change.baseline_status == CheckStatus.FAIL
        assert change.current_status == CheckStatus.PASS
        assert change.to_dict()["baseline_status"] == "Fail"


class TestScopes:
    RECORDS = [
        {"scope": "111111111111", "check_id": "SE03", "status": "Pass"},
        {"scope": "222222222222", "check_id": "SE03", "status": "Fail"},
    ]

    def test_index_skips_other_scopes(self):
        assert index_baseline(self.RECORDS, "222222222222") == {"SE03": CheckStatus.FAIL}
        assert index_baseline(self.RECORDS, "333333333333") == {}

    def test_unscoped_records_apply_to_every_scope(self):
        records = [{"check_id": "SE03", "status": "Pass"}]
        assert index_baseline(records, "222222222222") == {"SE03": CheckStatus.PASS}

    def test_each_scope_matched_against_its_own_records(self):
        comparison = compare_scopes(
            {
                "111111111111": [result("SE03", CheckStatus.PASS)],
                "222222222222": [result("SE03", CheckStatus.FAIL)],
            },
            self.RECORDS,
        )
        assert comparison.new_failures == []
        assert [change.scope for change in comparison.unchanged] == ["111111111111", "222222222222"]
        assert comparison.unchanged[1].to_dict()["scope"] == "222222222222"

    def test_regression_reported_for_its_scope(self):
        comparison = compare_scopes(
            {
                "111111111111": [result("SE03", CheckStatus.FAIL)],
                "222222222222": [result("SE03", CheckStatus.FAIL)],
            },
            self.RECORDS,
        )
        assert [change.scope for change in comparison.new_failures] == ["111111111111"]
        assert [change.scope for change in comparison.unchanged] == ["222222222222"]


class TestDiff:
    def test_missing_baseline_returns_none(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            assert diff([result("RE01", CheckStatus.FAIL)], tmp_path / "nope.json") is None
        assert "not found" in caplog.text

    def test_reads_saved_result_set(self, tmp_path):
        path = tmp_path / "results.json"
        path.write_text(json.dumps([result("RE01", CheckStatus.PASS).to_dict()]))
        comparison = diff([result("RE01", CheckStatus.FAIL)], path)
        assert ids(comparison.new_failures) == {"RE01"}
        assert comparison.baseline_path == str(path)

    def test_mapping_compared_per_scope(self, tmp_path):
        path = tmp_path / "results.json"
        path.write_text(json.dumps(TestScopes.RECORDS))
        comparison = diff({"222222222222": [result("SE03", CheckStatus.FAIL)]}, path)
        assert comparison.new_failures == []
        assert ids(comparison.unchanged) == {"SE03"}

    def test_reads_full_report(self, tmp_path):
        path = tmp_path / "report.json"
        path.write_text(json.dumps({"results": [{"check_id": "RE01", "status": "Fail"}]}))
        comparison = diff([result("RE01", CheckStatus.PASS)], path)
        assert ids(comparison.improvements) == {"RE01"}

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(BaselineError, match="invalid JSON"):
            diff([], path)

    def test_wrong_shape_raises(self, tmp_path):
        path = tmp_path / "shape.json"
        path.write_text(json.dumps({"check_id": "RE01"}))
        with pytest.raises(BaselineError):
            diff([], path)
