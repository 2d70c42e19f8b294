"""
Aggregation pipeline: Normalize -> Deduplicate -> Rank -> Verdict.

Runs once per review run, after every agent's output has been collected.
Synchronous and in-memory; no I/O happens here.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .dedup import deduplicate
from .domain import (
    AgentOutput,
    DedupSettings,
    MergedFinding,
    Rejection,
    Verdict,
    VerdictThresholds,
)
from .normalizer import normalize_findings
from .ports import SimilarityScorer
from .ranker import rank_findings
from .verdict import evaluate_verdict

logger = logging.getLogger(__name__)


@dataclass
class AggregationResult:
    """Everything a report needs: ranked findings, verdict, and what was dropped."""

    findings: list[MergedFinding]
    verdict: Verdict
    rejections: list[Rejection] = field(default_factory=list)
    agent_errors: dict[str, str] = field(default_factory=dict)
    raw_count: int = 0

    @property
    def rejected_count(self) -> int:
        return len(self.rejections)

    def rejection_summary(self) -> str | None:
        if not self.rejections:
            return None
        noun = "finding" if len(self.rejections) == 1 else "findings"
        return f"{len(self.rejections)} {noun} rejected, see details"


def _as_agent_outputs(
    agent_outputs: Iterable[AgentOutput] | Mapping[str, Iterable[Any]],
) -> list[AgentOutput]:
    if isinstance(agent_outputs, Mapping):
        return [AgentOutput(agent_id=agent_id, findings=list(records))
                for agent_id, records in agent_outputs.items()]
    return list(agent_outputs)


def aggregate(
    agent_outputs: Iterable[AgentOutput] | Mapping[str, Iterable[Any]],
    *,
    thresholds: VerdictThresholds | None = None,
    settings: DedupSettings | None = None,
    scorer: SimilarityScorer | None = None,
) -> AggregationResult:
    """Turn raw per-agent output into ranked merged findings and a verdict.

    Malformed records are rejected and reported, never fatal.  Agents that
    failed upstream (``AgentOutput.error``) are recorded in ``agent_errors``.
    """
    outputs = _as_agent_outputs(agent_outputs)

    findings = []
    rejections: list[Rejection] = []
    agent_errors: dict[str, str] = {}
    raw_count = 0

    for output in outputs:
        if output.error:
            agent_errors[output.agent_id] = output.error
        raw_count += len(output.findings)
        normalized = normalize_findings(output.findings, agent_id=output.agent_id)
        findings.extend(normalized.findings)
        rejections.extend(normalized.rejections)

    merged = deduplicate(findings, settings=settings, scorer=scorer)
    ranked = rank_findings(merged)
    verdict = evaluate_verdict(ranked, thresholds)

    result = AggregationResult(
        findings=ranked,
        verdict=verdict,
        rejections=rejections,
        agent_errors=agent_errors,
        raw_count=raw_count,
    )
    if result.rejections:
        logger.warning("%s", result.rejection_summary())
    logger.info(
        "Aggregated %d raw findings from %d agents into %d; verdict %s",
        raw_count, len(outputs), len(ranked), verdict.status.value,
    )
    return result
