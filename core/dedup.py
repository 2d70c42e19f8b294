"""
Deduplicator: collapses findings from several agents that describe the same issue.

Two path-bearing findings are duplicates when they are in the same file, their
line ranges share at least one line (a missing range covers the whole file),
and their categories score at or above the configured similarity threshold.
Findings without a file path only merge with each other, and only when both
category and title match exactly.
"""

import logging
from collections.abc import Iterable

from .domain import DedupSettings, Finding, MergedFinding, Severity
from .ports import SimilarityScorer
from .similarity import get_scorer

logger = logging.getLogger(__name__)


def presort_key(finding: Finding) -> tuple:
    """Deterministic ordering applied before grouping."""
    line_range = finding.line_range
    return (
        finding.file_path,
        line_range.start if line_range else 0,
        finding.agent_id,
        line_range.end if line_range else 0,
        finding.category,
        finding.title,
        finding.severity.rank,
        finding.description,
        finding.recommendation,
        finding.evidence or "",
        finding.reference or "",
    )


def _ranges_overlap(a: Finding, b: Finding) -> bool:
    if a.line_range is None or b.line_range is None:
        return True
    return a.line_range.overlaps(b.line_range)


def are_duplicates(a: Finding, b: Finding, scorer: SimilarityScorer, threshold: float) -> bool:
    """Return True if *a* and *b* report the same underlying issue."""
    if not a.file_path or not b.file_path:
        if a.file_path or b.file_path:
            return False
        return a.category.strip() == b.category.strip() and a.title.strip() == b.title.strip()

    if a.file_path != b.file_path:
        return False
    if not _ranges_overlap(a, b):
        return False
    return scorer.score(a.category, b.category) >= threshold


class _DisjointSet:
    """Union-find over list indices; roots are always the smallest index."""

    def __init__(self, size: int):
        self.parent = list(range(size))

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, a: int, b: int) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return
        if root_a < root_b:
            self.parent[root_b] = root_a
        else:
            self.parent[root_a] = root_b


def _buckets(findings: list[Finding]) -> dict[str, list[int]]:
    # Only same-file findings can be duplicates; "" holds the file-less ones.
    buckets: dict[str, list[int]] = {}
    for i, finding in enumerate(findings):
        buckets.setdefault(finding.file_path, []).append(i)
    return buckets


def _transitive_groups(findings: list[Finding], scorer: SimilarityScorer, threshold: float) -> list[list[int]]:
    dsu = _DisjointSet(len(findings))
    for indices in _buckets(findings).values():
        for pos, i in enumerate(indices):
            for j in indices[pos + 1:]:
                if are_duplicates(findings[i], findings[j], scorer, threshold):
                    logger.debug("Merging %s with %s", findings[i].location, findings[j].location)
                    dsu.union(i, j)

    groups: dict[int, list[int]] = {}
    for i in range(len(findings)):
        groups.setdefault(dsu.find(i), []).append(i)
    return [groups[root] for root in sorted(groups)]


def _pairwise_groups(findings: list[Finding], scorer: SimilarityScorer, threshold: float) -> list[list[int]]:
    groups: list[list[int]] = []
    for i, finding in enumerate(findings):
        for group in groups:
            if all(are_duplicates(finding, findings[j], scorer, threshold) for j in group):
                group.append(i)
                break
        else:
            groups.append([i])
    return groups


def _representative(members: list[Finding]) -> Finding:
    # members are already in presort order, so min() keeps the earliest on a full tie.
    return min(members, key=lambda f: (f.severity.rank, f.agent_id))


def merge_group(members: list[Finding]) -> MergedFinding:
    """Fold a non-empty group of equivalent findings into one ``MergedFinding``."""
    if not members:
        raise ValueError("cannot merge an empty group")

    rep = _representative(members)

    evidence = rep.evidence or next((m.evidence for m in members if m.evidence), None)
    reference = rep.reference or next((m.reference for m in members if m.reference), None)
    if evidence != rep.evidence or reference != rep.reference:
        rep = Finding(
            agent_id=rep.agent_id,
            severity=rep.severity,
            file_path=rep.file_path,
            category=rep.category,
            title=rep.title,
            line_range=rep.line_range,
            description=rep.description,
            evidence=evidence,
            recommendation=rep.recommendation,
            reference=reference,
        )

    merged_from = tuple(dict.fromkeys(m.agent_id for m in members))
    return MergedFinding(
        finding=rep,
        merged_from=merged_from,
        effective_severity=Severity.most_severe(m.severity for m in members),
        sources=tuple(members),
    )


def deduplicate(
    findings: Iterable[Finding],
    *,
    settings: DedupSettings | None = None,
    scorer: SimilarityScorer | None = None,
) -> list[MergedFinding]:
    """Group equivalent findings and merge each group.

    Output order follows the first member of each group after the
    deterministic pre-sort, so shuffled input gives identical output.
    """
    settings = settings or DedupSettings()
    scorer = scorer or get_scorer(settings.scorer)

    ordered = sorted(findings, key=presort_key)
    if settings.merge_strategy == "pairwise":
        groups = _pairwise_groups(ordered, scorer, settings.similarity_threshold)
    else:
        groups = _transitive_groups(ordered, scorer, settings.similarity_threshold)

    merged = [merge_group([ordered[i] for i in group]) for group in groups]
    logger.info("Deduplicated %d findings into %d", len(ordered), len(merged))
    return merged
