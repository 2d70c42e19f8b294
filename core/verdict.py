"""Verdict engine: PASS / WARN / FAIL from severity counts and thresholds."""

from collections.abc import Iterable, Mapping

from .domain import (
    MergedFinding,
    SEVERITY_ORDER,
    Severity,
    Verdict,
    VerdictStatus,
    VerdictThresholds,
)


def count_severities(findings: Iterable[MergedFinding]) -> dict[Severity, int]:
    """Histogram of effective severities; every severity is present as a key."""
    counts = {severity: 0 for severity in SEVERITY_ORDER}
    for finding in findings:
        counts[finding.effective_severity] += 1
    return counts


def decide_status(counts: Mapping[Severity, int], thresholds: VerdictThresholds) -> VerdictStatus:
    """Apply the verdict rules in fixed order; the first match wins.

    Inconsistent thresholds (e.g. ``warn_if_high_gt > fail_if_high_gt``) are
    not an error: the FAIL rules are checked first, so they always take
    precedence.
    """
    critical = counts.get(Severity.CRITICAL, 0)
    high = counts.get(Severity.HIGH, 0)
    medium = counts.get(Severity.MEDIUM, 0)

    if critical > thresholds.fail_if_critical_gt:
        return VerdictStatus.FAIL
    if high > thresholds.fail_if_high_gt:
        return VerdictStatus.FAIL
    if high > thresholds.warn_if_high_gt:
        return VerdictStatus.WARN
    if medium > thresholds.warn_if_medium_gt:
        return VerdictStatus.WARN
    return VerdictStatus.PASS


def evaluate_verdict(
    findings: Iterable[MergedFinding],
    thresholds: VerdictThresholds | None = None,
) -> Verdict:
    """Compute the verdict for a merged finding set."""
    thresholds = thresholds or VerdictThresholds()
    counts = count_severities(findings)
    return Verdict(status=decide_status(counts, thresholds), counts=counts)
