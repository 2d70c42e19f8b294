"""Unit tests for the verdict engine."""

import pytest

from core.dedup import merge_group
from core.domain import (
    ConfigurationError,
    Severity,
    VerdictStatus,
    VerdictThresholds,
)
from core.verdict import count_severities, decide_status, evaluate_verdict


def _counts(**kwargs):
    return {Severity[name]: value for name, value in kwargs.items()}


class TestDecideStatus:
    def test_critical_over_limit_fails(self):
        assert decide_status(_counts(CRITICAL=1), VerdictThresholds()) is VerdictStatus.FAIL

    def test_medium_over_warn_limit_warns(self):
        assert decide_status(_counts(MEDIUM=4), VerdictThresholds()) is VerdictStatus.WARN

    def test_medium_at_warn_limit_passes(self):
        assert decide_status(_counts(MEDIUM=3, LOW=10, INFO=5), VerdictThresholds()) is VerdictStatus.PASS

    def test_empty_counts_pass(self):
        assert decide_status({}, VerdictThresholds()) is VerdictStatus.PASS

    def test_high_with_default_thresholds_fails(self):
        # fail_if_high_gt defaults to 0 and the FAIL rule is checked before the WARN rule.
        assert decide_status(_counts(HIGH=1, MEDIUM=2), VerdictThresholds()) is VerdictStatus.FAIL

    def test_high_warns_when_fail_limit_is_raised(self):
        thresholds = VerdictThresholds(fail_if_high_gt=2)
        assert decide_status(_counts(HIGH=1, MEDIUM=2), thresholds) is VerdictStatus.WARN
        assert decide_status(_counts(HIGH=3), thresholds) is VerdictStatus.FAIL

    def test_inconsistent_thresholds_resolve_to_fail(self):
        thresholds = VerdictThresholds(fail_if_high_gt=1, warn_if_high_gt=5)
        assert decide_status(_counts(HIGH=2), thresholds) is VerdictStatus.FAIL

    def test_lenient_thresholds(self):
        thresholds = VerdictThresholds(fail_if_critical_gt=2, fail_if_high_gt=5, warn_if_high_gt=5, warn_if_medium_gt=10)
        assert decide_status(_counts(CRITICAL=2, HIGH=5, MEDIUM=10), thresholds) is VerdictStatus.PASS

    @pytest.mark.parametrize(
        "base",
        [_counts(), _counts(MEDIUM=4), _counts(HIGH=1), _counts(CRITICAL=1), _counts(LOW=9)],
    )
    def test_adding_a_critical_never_improves_verdict(self, base):
        order = [VerdictStatus.PASS, VerdictStatus.WARN, VerdictStatus.FAIL]
        thresholds = VerdictThresholds(fail_if_critical_gt=1, fail_if_high_gt=3)
        before = decide_status(base, thresholds)
        after = decide_status({**base, Severity.CRITICAL: base.get(Severity.CRITICAL, 0) + 1}, thresholds)
        assert order.index(after) >= order.index(before)


class TestEvaluateVerdict:
    def test_counts_effective_severities(self, make_finding):
        merged = [
            merge_group([
                make_finding(agent_id="a", severity=Severity.LOW),
                make_finding(agent_id="b", severity=Severity.CRITICAL),
            ]),
            merge_group([make_finding(severity=Severity.MEDIUM, file_path="x.py")]),
        ]

        verdict = evaluate_verdict(merged)

        assert verdict.status is VerdictStatus.FAIL
        assert verdict.counts == {
            Severity.CRITICAL: 1,
            Severity.HIGH: 0,
            Severity.MEDIUM: 1,
            Severity.LOW: 0,
            Severity.INFO: 0,
        }
        assert verdict.total == 2
        assert verdict.exit_code == 1

    def test_no_findings_pass_with_zero_exit(self):
        verdict = evaluate_verdict([])
        assert verdict.status is VerdictStatus.PASS
        assert verdict.exit_code == 0
        assert set(count_severities([])) == set(Severity)

    def test_warn_exits_zero(self, make_finding):
        merged = [merge_group([make_finding(severity=Severity.MEDIUM, file_path=f"f{i}.py")]) for i in range(4)]
        verdict = evaluate_verdict(merged)
        assert verdict.status is VerdictStatus.WARN
        assert verdict.exit_code == 0


class TestVerdictThresholds:
    def test_defaults(self):
        t = VerdictThresholds()
        assert t.to_dict() == {
            "fail_if_critical_gt": 0,
            "fail_if_high_gt": 0,
            "warn_if_high_gt": 0,
            "warn_if_medium_gt": 3,
        }

    def test_from_mapping_fills_missing_keys(self):
        t = VerdictThresholds.from_mapping({"warn_if_medium_gt": 10})
        assert t.warn_if_medium_gt == 10
        assert t.fail_if_critical_gt == 0

    def test_from_none_is_defaults(self):
        assert VerdictThresholds.from_mapping(None) == VerdictThresholds()

    @pytest.mark.parametrize("value", ["3", 2.5, True, [1]])
    def test_non_integer_names_key(self, value):
        with pytest.raises(ConfigurationError) as exc:
            VerdictThresholds.from_mapping({"fail_if_high_gt": value})
        assert exc.value.key == "thresholds.fail_if_high_gt"
        assert "fail_if_high_gt" in str(exc.value)

    def test_negative_names_key(self):
        with pytest.raises(ConfigurationError, match="warn_if_medium_gt"):
            VerdictThresholds.from_mapping({"warn_if_medium_gt": -1})

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError, match="fail_if_medium_gt"):
            VerdictThresholds.from_mapping({"fail_if_medium_gt": 1})

    def test_non_mapping(self):
        with pytest.raises(ConfigurationError):
            VerdictThresholds.from_mapping([1, 2, 3])
