"""FastAPI app for the stateless aggregation core."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException

import core.service as core_service
from core import __version__ as CORE_VERSION
from core.domain import ConfigurationError
from contracts.v1.schemas import AggregateRequest, AggregateResponse

app = FastAPI(
    title="oversight-core",
    description="Stateless finding aggregation API (agent outputs in, ranked findings and verdict out)",
    version=CORE_VERSION,
)


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness/readiness check."""
    return {"status": "ok"}


@app.post("/v1/aggregate", response_model=AggregateResponse)
async def aggregate_v1(request: AggregateRequest) -> AggregateResponse:
    """Normalize, deduplicate, rank, and judge findings from several agents.

    A ``ConfigurationError`` becomes HTTP 400 with ``{"message", "key"}`` as
    the detail, so remote callers can re-raise it unchanged.
    """
    try:
        return core_service.aggregate(request)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail={"message": str(e), "key": e.key}) from e
