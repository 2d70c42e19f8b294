"""
Agent output handling: loading agent output files and running agents in parallel.

Each agent is an independent review pass writing to its own output buffer, so
the only synchronization point is the join before aggregation.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Mapping, Sequence

from core.domain import AgentOutput, DedupSettings, VerdictThresholds
from core.pipeline import AggregationResult, aggregate
from core.ports import ReviewAgentPort

logger = logging.getLogger(__name__)


class AgentOutputError(Exception):
    """Raised when an agent output file cannot be read or has the wrong shape."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


def _strip_code_fences(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.split("\n", 1)[1] if "\n" in raw else raw[3:]
    if raw.endswith("```"):
        raw = raw[:-3].rstrip()
    return raw


def parse_agent_output(text: str, *, default_agent_id: str, source: str = "") -> AgentOutput:
    """Parse one agent's JSON output.

    Accepted shapes::

        [{...finding...}, ...]
        {"agent_id": "security-reviewer", "findings": [{...}, ...]}

    Markdown code fences around the JSON are ignored.
    """
    try:
        data = json.loads(_strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise AgentOutputError(f"Agent output {source or default_agent_id} is not valid JSON: {e}", source) from e

    if isinstance(data, list):
        return AgentOutput(agent_id=default_agent_id, findings=data)

    if isinstance(data, dict):
        findings = data.get("findings", [])
        if not isinstance(findings, list):
            raise AgentOutputError(
                f"Agent output {source or default_agent_id}: 'findings' is not a list", source,
            )
        agent_id = data.get("agent_id")
        if not isinstance(agent_id, str) or not agent_id.strip():
            agent_id = default_agent_id
        error = data.get("error")
        return AgentOutput(
            agent_id=agent_id.strip(),
            findings=findings,
            error=str(error) if error else None,
        )

    raise AgentOutputError(
        f"Agent output {source or default_agent_id} must be a list or an object, got {type(data).__name__}",
        source,
    )


def load_agent_output(path: str | Path) -> AgentOutput:
    """Load an agent output file; the file stem is the fallback agent id."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise AgentOutputError(f"Cannot read agent output {path}: {e}", str(path)) from e
    return parse_agent_output(text, default_agent_id=path.stem, source=str(path))


async def _run_agent(agent_id: str, agent: ReviewAgentPort, files: Sequence[str]) -> AgentOutput:
    try:
        findings = await agent.review(files=files)
    except Exception as e:
        logger.warning("Agent '%s' failed: %s", agent_id, e)
        return AgentOutput(agent_id=agent_id, findings=[], error=str(e))
    return AgentOutput(agent_id=agent_id, findings=list(findings or []))


async def collect_agent_outputs(
    agents: Mapping[str, ReviewAgentPort],
    files: Sequence[str],
) -> list[AgentOutput]:
    """Run every agent concurrently over the same file set and wait for all of them.

    A failing agent produces an ``AgentOutput`` with ``error`` set; the
    others are unaffected.  Results keep the order of *agents*.
    """
    tasks = [_run_agent(agent_id, agent, files) for agent_id, agent in agents.items()]
    outputs = await asyncio.gather(*tasks)

    for output in outputs:
        if output.error:
            logger.info("Agent '%s' contributed no findings (failed)", output.agent_id)
        else:
            logger.info("Agent '%s' reported %d findings", output.agent_id, len(output.findings))
    return list(outputs)


async def run_review(
    agents: Mapping[str, ReviewAgentPort],
    files: Sequence[str],
    *,
    thresholds: VerdictThresholds | None = None,
    settings: DedupSettings | None = None,
) -> AggregationResult:
    """Fan out to all agents, join, then aggregate once."""
    outputs = await collect_agent_outputs(agents, files)
    return aggregate(outputs, thresholds=thresholds, settings=settings)
