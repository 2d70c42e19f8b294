"""Report assembly: turn an aggregation result into the document renderers consume."""

from __future__ import annotations

from contracts.v1.adapters import adapt_result_to_response
from contracts.v1.schemas import AggregateResponse, VerdictContract
from core.domain import SEVERITY_ORDER, VerdictStatus, VerdictThresholds
from core.pipeline import AggregationResult


def assemble_report(
    result: AggregationResult,
    *,
    thresholds: VerdictThresholds | None = None,
    config_source: str | None = None,
    timings: dict[str, float] | None = None,
) -> AggregateResponse:
    """Compose ranked findings, verdict, and rejections into one report document."""
    return adapt_result_to_response(
        result,
        thresholds=thresholds or VerdictThresholds(),
        config_source=config_source,
        timings=timings,
    )


def exit_code_for(status: VerdictStatus | str) -> int:
    """PASS/WARN exit 0, FAIL exits 1 (for CI gating)."""
    if isinstance(status, str):
        status = VerdictStatus(status.strip().upper())
    return status.exit_code


def severity_histogram(verdict: VerdictContract) -> str:
    """``"1 critical, 0 high, 2 medium, 0 low, 0 info"``."""
    return ", ".join(
        f"{verdict.counts.get(severity.value, 0)} {severity.value.lower()}"
        for severity in SEVERITY_ORDER
    )


def summary_line(report: AggregateResponse) -> str:
    """One-line CI summary, e.g. ``"FAIL: 3 findings (1 critical, ...); 1 rejected"``."""
    total = len(report.findings)
    noun = "finding" if total == 1 else "findings"
    line = f"{report.verdict.status}: {total} {noun} ({severity_histogram(report.verdict)})"
    if report.meta.rejected_count:
        line += f"; {report.meta.rejected_count} rejected"
    return line
