"""
Normalizer: validates and canonicalizes raw agent records into ``Finding`` objects.

Agents emit loosely structured records (JSON from an LLM, dicts from a
detector).  Everything downstream relies on the invariants of ``Finding``, so
every record passes through here first.  Records that cannot be repaired are
rejected with ``InvalidFindingError``; batch normalization turns those into
``Rejection`` entries instead of raising.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .domain import Finding, InvalidFindingError, LineRange, Rejection, Severity

logger = logging.getLogger(__name__)

_RANGE_TEXT = re.compile(r"^\s*L?(\d+)\s*(?:[-:]\s*L?(\d+))?\s*$", re.IGNORECASE)

OPTIONAL_TEXT_FIELDS = ("description", "evidence", "recommendation", "reference")


@dataclass
class NormalizationResult:
    """Findings that passed validation, plus every record that did not."""

    findings: list[Finding] = field(default_factory=list)
    rejections: list[Rejection] = field(default_factory=list)


def _required_text(record: Mapping, key: str, agent_id: str | None) -> str:
    value = record.get(key)
    if value is None:
        raise InvalidFindingError(f"missing required field '{key}'", agent_id=agent_id, payload=record)
    if not isinstance(value, str):
        raise InvalidFindingError(
            f"field '{key}' must be a string, got {type(value).__name__}",
            agent_id=agent_id, payload=record,
        )
    value = value.strip()
    if not value:
        raise InvalidFindingError(f"field '{key}' is empty", agent_id=agent_id, payload=record)
    return value


def _optional_text(record: Mapping, key: str, agent_id: str | None) -> str:
    value = record.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidFindingError(
            f"field '{key}' must be a string, got {type(value).__name__}",
            agent_id=agent_id, payload=record,
        )
    return value.strip()


def _line_number(value: Any, key: str, record: Mapping, agent_id: str | None) -> int:
    if isinstance(value, bool):
        raise InvalidFindingError(f"{key} must be an integer, got {value!r}", agent_id=agent_id, payload=record)
    if isinstance(value, str):
        text = value.strip()
        # isdigit() alone admits superscripts and other digits int() refuses
        if text.isascii() and text.isdigit():
            value = int(text)
    if not isinstance(value, int):
        raise InvalidFindingError(f"{key} must be an integer, got {value!r}", agent_id=agent_id, payload=record)
    if value < 1:
        raise InvalidFindingError(f"{key} must be >= 1, got {value}", agent_id=agent_id, payload=record)
    return value


def _raw_line_bounds(record: Mapping, agent_id: str | None) -> tuple[Any, Any]:
    """Pull ``(start, end)`` out of whichever line-range shape the agent used."""
    raw = record.get("line_range")
    if raw is not None:
        if isinstance(raw, Mapping):
            return raw.get("start"), raw.get("end")
        if isinstance(raw, (list, tuple)):
            if len(raw) == 0:
                return None, None
            if len(raw) > 2:
                raise InvalidFindingError(
                    f"line_range must have at most two elements, got {len(raw)}",
                    agent_id=agent_id, payload=record,
                )
            return raw[0], raw[-1]
        if isinstance(raw, str):
            match = _RANGE_TEXT.match(raw)
            if not match:
                raise InvalidFindingError(
                    f"line_range '{raw}' is not of the form 'start-end'",
                    agent_id=agent_id, payload=record,
                )
            return match.group(1), match.group(2)
        return raw, None

    if record.get("line_start") is not None:
        return record.get("line_start"), record.get("line_end")
    if record.get("line") is not None:
        return record.get("line"), None
    return None, None


def _line_range(record: Mapping, agent_id: str | None) -> LineRange | None:
    start, end = _raw_line_bounds(record, agent_id)
    if start is None:
        if end is not None:
            raise InvalidFindingError("line_range has an end but no start", agent_id=agent_id, payload=record)
        return None

    start = _line_number(start, "line_range.start", record, agent_id)
    end = start if end is None else _line_number(end, "line_range.end", record, agent_id)
    if start > end:
        raise InvalidFindingError(
            f"line_range start ({start}) is after end ({end})", agent_id=agent_id, payload=record,
        )
    return LineRange(start, end)


def canonical_path(path: str) -> str:
    """Repository-relative path with forward slashes and no leading ``./``."""
    path = path.strip().replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def normalize_finding(raw: Any, *, agent_id: str | None = None) -> Finding:
    """Validate one raw record and return a well-formed ``Finding``.

    ``agent_id`` is used when the record does not name its own agent.

    Raises ``InvalidFindingError`` describing the first problem found.
    """
    if not isinstance(raw, Mapping):
        raise InvalidFindingError(
            f"finding must be an object, got {type(raw).__name__}", agent_id=agent_id, payload=raw,
        )

    record_agent = raw.get("agent_id")
    if record_agent is None or (isinstance(record_agent, str) and not record_agent.strip()):
        record_agent = agent_id
    if not isinstance(record_agent, str) or not record_agent.strip():
        raise InvalidFindingError("missing required field 'agent_id'", agent_id=agent_id, payload=raw)
    record_agent = record_agent.strip()

    if raw.get("severity") is None:
        raise InvalidFindingError("missing required field 'severity'", agent_id=record_agent, payload=raw)
    try:
        severity = Severity.parse(raw["severity"])
    except ValueError as e:
        raise InvalidFindingError(str(e), agent_id=record_agent, payload=raw) from e

    title = _required_text(raw, "title", record_agent)
    category = _required_text(raw, "category", record_agent)

    file_value = raw.get("file_path", raw.get("file"))
    if file_value is not None and not isinstance(file_value, str):
        raise InvalidFindingError(
            f"file_path must be a string, got {type(file_value).__name__}",
            agent_id=record_agent, payload=raw,
        )
    file_path = canonical_path(file_value or "")
    if not file_path and severity is not Severity.INFO:
        raise InvalidFindingError(
            f"file_path is required for {severity.value} findings", agent_id=record_agent, payload=raw,
        )

    line_range = _line_range(raw, record_agent)
    texts = {key: _optional_text(raw, key, record_agent) for key in OPTIONAL_TEXT_FIELDS}

    return Finding(
        agent_id=record_agent,
        severity=severity,
        file_path=file_path,
        category=category,
        title=title,
        line_range=line_range,
        description=texts["description"],
        evidence=texts["evidence"] or None,
        recommendation=texts["recommendation"],
        reference=texts["reference"] or None,
    )


def normalize_findings(records: Iterable[Any], *, agent_id: str | None = None) -> NormalizationResult:
    """Normalize a batch of raw records, collecting rejections instead of raising."""
    result = NormalizationResult()
    for index, raw in enumerate(records, 1):
        try:
            result.findings.append(normalize_finding(raw, agent_id=agent_id))
        except InvalidFindingError as e:
            logger.warning(
                "Rejected finding #%d from agent '%s': %s; payload=%r",
                index, e.agent_id or "unknown", e.reason, raw,
            )
            result.rejections.append(Rejection(agent_id=e.agent_id, payload=raw, reason=e.reason))
    return result
