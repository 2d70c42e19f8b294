"""
End-to-end tests for core.pipeline.aggregate.
"""

import logging

from core.domain import AgentOutput, DedupSettings, Severity, VerdictStatus, VerdictThresholds
from core.pipeline import aggregate


class TestAggregate:
    def test_overlapping_high_and_critical_merge(self, overlapping_credential_findings):
        result = aggregate(overlapping_credential_findings)

        assert len(result.findings) == 1
        merged = result.findings[0]
        assert merged.effective_severity is Severity.CRITICAL
        assert set(merged.merged_from) == {"security-reviewer", "secrets-scanner"}
        assert result.verdict.status is VerdictStatus.FAIL

    def test_full_run(self, sample_agent_outputs):
        result = aggregate(sample_agent_outputs)

        assert result.raw_count == 5
        assert [f.effective_severity for f in result.findings] == [
            Severity.CRITICAL, Severity.MEDIUM, Severity.LOW,
        ]
        assert result.findings[0].merged_from == ("security-reviewer", "secrets-scanner")
        assert result.findings[0].title == "Secret literal detected"
        assert result.verdict.status is VerdictStatus.FAIL
        assert result.verdict.counts[Severity.CRITICAL] == 1

    def test_malformed_record_is_rejected_but_run_continues(self, sample_agent_outputs):
        result = aggregate(sample_agent_outputs)

        assert result.rejected_count == 1
        rejection = result.rejections[0]
        assert rejection.agent_id == "accessibility-reviewer"
        assert rejection.payload["severity"] == "Critikal"
        assert result.rejection_summary() == "1 finding rejected, see details"

    def test_unparseable_line_number_does_not_abort_run(self, make_raw):
        result = aggregate({
            "security-reviewer": [make_raw(line_range=..., line="²"), make_raw()],
            "secrets-scanner": [make_raw(agent_id="secrets-scanner", file_path="src/config.py")],
        })

        assert result.rejected_count == 1
        assert len(result.findings) == 2
        assert result.raw_count == 3

    def test_rejection_summary_is_logged(self, sample_agent_outputs, caplog):
        with caplog.at_level(logging.WARNING, logger="core.pipeline"):
            aggregate(sample_agent_outputs)
        assert "1 finding rejected" in caplog.text

    def test_medium_only_run_warns(self, make_raw):
        records = [
            make_raw(severity="MEDIUM", file_path=f"src/mod{i}.py", category="Complexity")
            for i in range(4)
        ]
        result = aggregate({"quality-reviewer": records})
        assert result.verdict.status is VerdictStatus.WARN
        assert result.rejection_summary() is None

    def test_accepts_agent_output_objects_and_records_errors(self, make_raw):
        outputs = [
            AgentOutput(agent_id="security-reviewer", findings=[make_raw(severity="LOW")]),
            AgentOutput(agent_id="perf-reviewer", findings=[], error="timed out"),
        ]

        result = aggregate(outputs)

        assert result.agent_errors == {"perf-reviewer": "timed out"}
        assert result.verdict.status is VerdictStatus.PASS

    def test_agent_id_defaults_from_output(self, make_raw):
        result = aggregate({"perf-reviewer": [make_raw(agent_id=..., severity="LOW")]})
        assert result.findings[0].merged_from == ("perf-reviewer",)

    def test_thresholds_and_settings_are_applied(self, overlapping_credential_findings):
        result = aggregate(
            overlapping_credential_findings,
            thresholds=VerdictThresholds(fail_if_critical_gt=1, fail_if_high_gt=1),
            settings=DedupSettings(scorer="exact"),
        )

        assert len(result.findings) == 2
        assert result.verdict.status is VerdictStatus.WARN

    def test_empty_run_passes(self):
        result = aggregate({})
        assert result.findings == []
        assert result.verdict.status is VerdictStatus.PASS
