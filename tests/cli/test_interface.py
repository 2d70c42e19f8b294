"""
Tests for oversight cli.interface terminal output.
"""

import json

import pytest

from cli.interface import (
    format_location,
    print_finding,
    print_rejections,
    print_report,
    print_summary,
    render_json,
)
from contracts.v1.schemas import LineRangeContract, MergedFindingContract, RejectionContract
from core.pipeline import aggregate
from oversight.report import assemble_report


@pytest.fixture
def sample_report(sample_agent_outputs):
    return assemble_report(aggregate(sample_agent_outputs), config_source=".oversight.yml")


def _finding(**overrides):
    data = {
        "number": 1,
        "severity": "HIGH",
        "agent_id": "security-reviewer",
        "merged_from": ["security-reviewer"],
        "file_path": "src/auth.py",
        "line_range": LineRangeContract(start=10, end=12),
        "category": "Hardcoded Credentials",
        "title": "API key committed to source",
    }
    data.update(overrides)
    return MergedFindingContract(**data)


class TestFormatLocation:
    """Tests for format_location."""

    def test_range(self):
        assert format_location(_finding()) == "src/auth.py:L10-L12"

    def test_single_line(self):
        assert format_location(_finding(line_range=LineRangeContract(start=7, end=7))) == "src/auth.py:L7"

    def test_whole_file(self):
        assert format_location(_finding(line_range=None)) == "src/auth.py"

    def test_repository_wide(self):
        assert format_location(_finding(severity="INFO", file_path="", line_range=None)) == "(repository)"


class TestPrintSummary:
    """Tests for print_summary."""

    def test_prints_verdict_and_histogram(self, capsys, sample_report):
        print_summary(sample_report)
        out = capsys.readouterr().out

        assert "VERDICT: FAIL" in out
        assert "Findings:  3 (from 5 raw)" in out
        assert "1 critical, 0 high, 1 medium, 1 low, 0 info" in out
        assert "Config:    .oversight.yml" in out

    def test_prints_rejection_notice(self, capsys, sample_report):
        print_summary(sample_report)
        out = capsys.readouterr().out

        assert "1 finding rejected, see details below" in out

    def test_lists_failed_agents(self, capsys, make_raw):
        result = aggregate({"security-reviewer": [make_raw(severity="LOW")]})
        result.agent_errors["perf-reviewer"] = "timed out"

        print_summary(assemble_report(result))
        out = capsys.readouterr().out

        assert "Agents that failed: 1" in out
        assert "perf-reviewer: timed out" in out
        assert "built-in defaults" in out


class TestPrintFinding:
    """Tests for print_finding."""

    def test_prints_header_and_progress(self, capsys):
        print_finding(_finding(number=2), current=2, total=5)
        out = capsys.readouterr().out

        assert "FINDING #2 — HIGH — Hardcoded Credentials" in out
        assert "[2 of 5]" in out

    def test_prints_location_and_sources(self, capsys):
        print_finding(_finding(merged_from=["security-reviewer", "secrets-scanner"]))
        out = capsys.readouterr().out

        assert "LOCATION: src/auth.py:L10-L12" in out
        assert "REPORTED BY: security-reviewer, secrets-scanner" in out

    def test_optional_sections(self, capsys):
        print_finding(_finding(evidence='API_KEY = "x"', recommendation="Use env vars", reference="CWE-798"))
        out = capsys.readouterr().out

        assert 'EVIDENCE:\nAPI_KEY = "x"' in out
        assert "RECOMMENDATION: Use env vars" in out
        assert "REFERENCE: CWE-798" in out

    def test_omits_empty_sections(self, capsys):
        print_finding(_finding())
        out = capsys.readouterr().out

        assert "EVIDENCE" not in out
        assert "RECOMMENDATION" not in out
        assert "REFERENCE" not in out


class TestPrintRejections:
    """Tests for print_rejections."""

    def test_nothing_when_empty(self, capsys):
        print_rejections([])
        assert capsys.readouterr().out == ""

    def test_lists_reason_and_payload(self, capsys):
        print_rejections([
            RejectionContract(agent_id="a11y", reason="Unknown severity 'Critikal'", payload={"severity": "Critikal"}),
            RejectionContract(agent_id=None, reason="finding must be an object, got str", payload="x" * 500),
        ])
        out = capsys.readouterr().out

        assert "REJECTED FINDINGS (2)" in out
        assert "[a11y] Unknown severity 'Critikal'" in out
        assert '{"severity": "Critikal"}' in out
        assert "[unknown] finding must be an object" in out
        assert "..." in out


class TestPrintReport:
    def test_full_report_in_rank_order(self, capsys, sample_report):
        print_report(sample_report)
        out = capsys.readouterr().out

        assert out.index("FINDING #1 — CRITICAL") < out.index("FINDING #2 — MEDIUM") < out.index("FINDING #3 — LOW")
        assert "REJECTED FINDINGS (1)" in out
        assert out.rstrip().endswith(
            "FAIL: 3 findings (1 critical, 0 high, 1 medium, 1 low, 0 info); 1 rejected"
        )


def test_render_json_is_valid_report(sample_report):
    data = json.loads(render_json(sample_report))
    assert data["verdict"]["status"] == "FAIL"
    assert data["meta"]["config_source"] == ".oversight.yml"
    assert len(data["findings"]) == 3
