"""Pydantic contracts for the v1 stateless aggregation API."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

SeverityLiteral = Literal["CRITICAL", "HIGH", "MEDIUM", "LOW", "INFO"]
VerdictLiteral = Literal["PASS", "WARN", "FAIL"]


class _StrictModel(BaseModel):
    """Base model that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class AgentOutputContract(_StrictModel):
    """Raw findings from one agent; records stay loose until the normalizer sees them."""

    agent_id: str = Field(min_length=1)
    findings: list[Any] = Field(default_factory=list)
    error: str | None = None


class ThresholdsContract(_StrictModel):
    fail_if_critical_gt: int = Field(default=0, ge=0)
    fail_if_high_gt: int = Field(default=0, ge=0)
    warn_if_high_gt: int = Field(default=0, ge=0)
    warn_if_medium_gt: int = Field(default=3, ge=0)


class DedupSettingsContract(_StrictModel):
    similarity_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    merge_strategy: Literal["transitive", "pairwise"] = "transitive"
    scorer: Literal["sequence", "exact"] = "sequence"


class AggregateRequest(_StrictModel):
    agent_outputs: list[AgentOutputContract]
    thresholds: ThresholdsContract = Field(default_factory=ThresholdsContract)
    dedup: DedupSettingsContract = Field(default_factory=DedupSettingsContract)


class LineRangeContract(_StrictModel):
    start: int = Field(ge=1)
    end: int = Field(ge=1)


class MergedFindingContract(_StrictModel):
    number: int = Field(ge=1)
    severity: SeverityLiteral
    agent_id: str
    merged_from: list[str] = Field(min_length=1)
    file_path: str
    line_range: LineRangeContract | None = None
    category: str
    title: str
    description: str = ""
    evidence: str | None = None
    recommendation: str = ""
    reference: str | None = None


class VerdictContract(_StrictModel):
    status: VerdictLiteral
    counts: dict[SeverityLiteral, int]
    exit_code: int


class RejectionContract(_StrictModel):
    agent_id: str | None = None
    reason: str
    payload: Any = None


class MetaContract(_StrictModel):
    core_version: str
    raw_count: int = Field(ge=0)
    merged_count: int = Field(ge=0)
    rejected_count: int = Field(ge=0)
    config_source: str | None = None
    timings: dict[str, float] | None = None


class AggregateResponse(_StrictModel):
    """The report document handed to renderers (full, summary, inline, CI)."""

    findings: list[MergedFindingContract]
    verdict: VerdictContract
    rejections: list[RejectionContract] = Field(default_factory=list)
    agent_errors: dict[str, str] = Field(default_factory=dict)
    thresholds: ThresholdsContract
    meta: MetaContract
