"""Presentation ordering for merged findings."""

from collections.abc import Iterable

from .domain import MergedFinding


def rank_key(finding: MergedFinding) -> tuple:
    """``(severity rank, file path, first line, title)``; a missing range sorts first."""
    line_range = finding.line_range
    return (
        finding.effective_severity.rank,
        finding.file_path,
        line_range.start if line_range else float("-inf"),
        finding.title,
    )


def rank_findings(findings: Iterable[MergedFinding]) -> list[MergedFinding]:
    """Return a new, stably sorted list; ties keep their original relative order."""
    return sorted(findings, key=rank_key)
