"""
Terminal output for the oversight CLI.
"""

import json

from contracts.v1.schemas import AggregateResponse, MergedFindingContract, RejectionContract
from oversight.report import severity_histogram, summary_line

RULE_WIDTH = 60


def format_location(finding: MergedFindingContract) -> str:
    if not finding.file_path:
        return "(repository)"
    if finding.line_range is None:
        return finding.file_path
    start, end = finding.line_range.start, finding.line_range.end
    if start == end:
        return f"{finding.file_path}:L{start}"
    return f"{finding.file_path}:L{start}-L{end}"


def print_summary(report: AggregateResponse):
    """Print the verdict block."""
    print("\n" + "=" * RULE_WIDTH)
    print(f"VERDICT: {report.verdict.status}")
    print("=" * RULE_WIDTH)
    print(f"  Findings:  {len(report.findings)} (from {report.meta.raw_count} raw)")
    print(f"  Severity:  {severity_histogram(report.verdict)}")
    if report.meta.config_source:
        print(f"  Config:    {report.meta.config_source}")
    else:
        print("  Config:    built-in defaults")

    if report.agent_errors:
        print(f"\n  Agents that failed: {len(report.agent_errors)}")
        for agent_id, message in sorted(report.agent_errors.items()):
            print(f"    • {agent_id}: {message}")

    if report.rejections:
        count = report.meta.rejected_count
        noun = "finding" if count == 1 else "findings"
        print(f"\n  {count} {noun} rejected, see details below")


def print_finding(finding: MergedFindingContract, current: int = None, total: int = None):
    """Print a single merged finding in the standard format."""
    print("\n" + "-" * RULE_WIDTH)
    header = f"FINDING #{finding.number} — {finding.severity} — {finding.category}"
    if current is not None and total is not None:
        progress = f"[{current} of {total}]"
        padding = RULE_WIDTH - len(header) - len(progress) - 1
        if padding > 0:
            header = header + " " * padding + progress
        else:
            header = f"{header} {progress}"
    print(header)
    print("-" * RULE_WIDTH)
    print(f"\n{finding.title}")
    print(f"\nLOCATION: {format_location(finding)}")
    print(f"REPORTED BY: {', '.join(finding.merged_from)}")
    if finding.description:
        print(f"\n{finding.description}")
    if finding.evidence:
        print(f"\nEVIDENCE:\n{finding.evidence}")
    if finding.recommendation:
        print(f"\nRECOMMENDATION: {finding.recommendation}")
    if finding.reference:
        print(f"REFERENCE: {finding.reference}")


def print_rejections(rejections: list[RejectionContract]):
    if not rejections:
        return
    print("\n" + "=" * RULE_WIDTH)
    print(f"REJECTED FINDINGS ({len(rejections)})")
    print("=" * RULE_WIDTH)
    for rejection in rejections:
        payload = json.dumps(rejection.payload, default=str)
        if len(payload) > 200:
            payload = payload[:197] + "..."
        print(f"  • [{rejection.agent_id or 'unknown'}] {rejection.reason}")
        print(f"      {payload}")


def print_report(report: AggregateResponse):
    """Print the full text report: verdict, findings, rejections, and a closing summary line."""
    print_summary(report)
    total = len(report.findings)
    for i, finding in enumerate(report.findings, 1):
        print_finding(finding, current=i, total=total)
    print_rejections(report.rejections)
    print("\n" + summary_line(report))


def render_json(report: AggregateResponse) -> str:
    return report.model_dump_json(indent=2)
