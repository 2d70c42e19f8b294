"""Stateless core orchestration service (agent outputs in, ranked report out)."""

from __future__ import annotations

import time

from contracts.v1.adapters import (
    adapt_result_to_response,
    agent_outputs_from_request,
    dedup_settings_from_request,
    thresholds_from_request,
)
from contracts.v1.schemas import AggregateRequest, AggregateResponse

from .pipeline import aggregate as run_pipeline
from .ports import SimilarityScorer


def aggregate(
    request: AggregateRequest,
    *,
    scorer: SimilarityScorer | None = None,
    config_source: str | None = None,
) -> AggregateResponse:
    """Run the aggregation pipeline against a v1 request payload.

    Raises ``ConfigurationError`` if the thresholds or dedup settings are
    malformed; nothing is aggregated in that case.
    """
    thresholds = thresholds_from_request(request)
    settings = dedup_settings_from_request(request)

    started = time.perf_counter()
    result = run_pipeline(
        agent_outputs_from_request(request),
        thresholds=thresholds,
        settings=settings,
        scorer=scorer,
    )
    elapsed = time.perf_counter() - started

    return adapt_result_to_response(
        result,
        thresholds=thresholds,
        config_source=config_source,
        timings={"total_seconds": elapsed},
    )
