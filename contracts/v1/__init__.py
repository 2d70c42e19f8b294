"""v1 contract schemas and domain adapters."""

__version__ = "1.0.0"

from .adapters import (
    adapt_result_to_response,
    agent_output_to_contract,
    agent_outputs_from_request,
    build_aggregate_request,
    dedup_settings_from_request,
    merged_finding_to_contract,
    thresholds_from_request,
    verdict_to_contract,
)
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

__all__ = [
    "__version__",
    "AgentOutputContract",
    "AggregateRequest",
    "AggregateResponse",
    "DedupSettingsContract",
    "LineRangeContract",
    "MergedFindingContract",
    "MetaContract",
    "RejectionContract",
    "ThresholdsContract",
    "VerdictContract",
    "adapt_result_to_response",
    "agent_output_to_contract",
    "agent_outputs_from_request",
    "build_aggregate_request",
    "dedup_settings_from_request",
    "merged_finding_to_contract",
    "thresholds_from_request",
    "verdict_to_contract",
]
