"""Adapters between core domain objects and v1 contracts."""

from __future__ import annotations

from core import __version__ as CORE_VERSION
from core.domain import (
    AgentOutput,
    DedupSettings,
    MergedFinding,
    Rejection,
    Verdict,
    VerdictThresholds,
)
from core.pipeline import AggregationResult

from .schemas import (
    AgentOutputContract,
    AggregateRequest,
    AggregateResponse,
    DedupSettingsContract,
    LineRangeContract,
    MergedFindingContract,
    MetaContract,
    RejectionContract,
    ThresholdsContract,
    VerdictContract,
)


def agent_outputs_from_request(req: AggregateRequest) -> list[AgentOutput]:
    """Adapt request agent outputs into core ``AgentOutput`` records."""
    return [
        AgentOutput(agent_id=out.agent_id, findings=list(out.findings), error=out.error)
        for out in req.agent_outputs
    ]


def thresholds_from_request(req: AggregateRequest) -> VerdictThresholds:
    return VerdictThresholds.from_mapping(req.thresholds.model_dump())


def dedup_settings_from_request(req: AggregateRequest) -> DedupSettings:
    return DedupSettings.from_mapping(req.dedup.model_dump())


def agent_output_to_contract(output: AgentOutput) -> AgentOutputContract:
    return AgentOutputContract(agent_id=output.agent_id, findings=list(output.findings), error=output.error)


def build_aggregate_request(
    agent_outputs: list[AgentOutput],
    *,
    thresholds: VerdictThresholds | None = None,
    settings: DedupSettings | None = None,
) -> AggregateRequest:
    """Build a v1 request from platform-side objects (used by remote clients)."""
    thresholds = thresholds or VerdictThresholds()
    settings = settings or DedupSettings()
    return AggregateRequest(
        agent_outputs=[agent_output_to_contract(out) for out in agent_outputs],
        thresholds=ThresholdsContract(**thresholds.to_dict()),
        dedup=DedupSettingsContract(**settings.to_dict()),
    )


def merged_finding_to_contract(finding: MergedFinding, number: int) -> MergedFindingContract:
    line_range = finding.line_range
    return MergedFindingContract(
        number=number,
        severity=finding.effective_severity.value,
        agent_id=finding.agent_id,
        merged_from=list(finding.merged_from),
        file_path=finding.file_path,
        line_range=LineRangeContract(start=line_range.start, end=line_range.end) if line_range else None,
        category=finding.category,
        title=finding.title,
        description=finding.description,
        evidence=finding.evidence,
        recommendation=finding.recommendation,
        reference=finding.reference,
    )


def verdict_to_contract(verdict: Verdict) -> VerdictContract:
    return VerdictContract(
        status=verdict.status.value,
        counts={severity.value: count for severity, count in verdict.counts.items()},
        exit_code=verdict.exit_code,
    )


def rejection_to_contract(rejection: Rejection) -> RejectionContract:
    return RejectionContract(
        agent_id=rejection.agent_id,
        reason=rejection.reason,
        payload=rejection.payload,
    )


def adapt_result_to_response(
    result: AggregationResult,
    *,
    thresholds: VerdictThresholds,
    config_source: str | None = None,
    timings: dict[str, float] | None = None,
) -> AggregateResponse:
    """Adapt a core ``AggregationResult`` to the v1 response (report) contract."""
    return AggregateResponse(
        findings=[merged_finding_to_contract(f, n) for n, f in enumerate(result.findings, 1)],
        verdict=verdict_to_contract(result.verdict),
        rejections=[rejection_to_contract(r) for r in result.rejections],
        agent_errors=dict(result.agent_errors),
        thresholds=ThresholdsContract(**thresholds.to_dict()),
        meta=MetaContract(
            core_version=CORE_VERSION,
            raw_count=result.raw_count,
            merged_count=len(result.findings),
            rejected_count=result.rejected_count,
            config_source=config_source,
            timings=timings,
        ),
    )
