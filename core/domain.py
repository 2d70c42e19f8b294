"""Core-native domain models for the finding aggregation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class InvalidFindingError(ValueError):
    """Raised when a raw agent record cannot be turned into a ``Finding``."""

    def __init__(self, reason: str, *, agent_id: str | None = None, payload: Any = None):
        super().__init__(reason)
        self.reason = reason
        self.agent_id = agent_id
        self.payload = payload


class ConfigurationError(ValueError):
    """Raised when thresholds or dedup settings are malformed."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class Severity(Enum):
    """Finding severity, totally ordered by urgency (CRITICAL first)."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @property
    def rank(self) -> int:
        """0 for CRITICAL up to 4 for INFO; lower sorts first."""
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        if isinstance(value, Severity):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Severity must be a string, got {type(value).__name__}")
        key = value.strip().upper()
        try:
            return cls(key)
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown severity '{value}'. Valid severities: {valid}") from None

    @classmethod
    def most_severe(cls, severities) -> "Severity":
        return min(severities, key=lambda s: s.rank)


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
    Severity.INFO: 4,
}

SEVERITY_ORDER: tuple[Severity, ...] = tuple(sorted(Severity, key=lambda s: s.rank))


@dataclass(frozen=True, slots=True)
class LineRange:
    """Inclusive, 1-based line span within a file."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 1:
            raise ValueError(f"line_range.start must be >= 1, got {self.start}")
        if self.start > self.end:
            raise ValueError(f"line_range.start ({self.start}) is after line_range.end ({self.end})")

    def overlaps(self, other: "LineRange") -> bool:
        return self.start <= other.end and other.start <= self.end

    def __str__(self) -> str:
        if self.start == self.end:
            return f"L{self.start}"
        return f"L{self.start}-L{self.end}"


@dataclass(frozen=True, slots=True)
class Finding:
    """A single validated finding reported by one agent."""

    agent_id: str
    severity: Severity
    file_path: str
    category: str
    title: str
    line_range: LineRange | None = None
    description: str = ""
    evidence: str | None = None
    recommendation: str = ""
    reference: str | None = None

    def __post_init__(self):
        if not self.file_path and self.severity is not Severity.INFO:
            raise ValueError("file_path may only be empty for INFO findings")

    @property
    def line_start(self) -> int | None:
        return self.line_range.start if self.line_range else None

    @property
    def line_end(self) -> int | None:
        return self.line_range.end if self.line_range else None

    @property
    def location(self) -> str:
        """Human-readable ``path:Lx-Ly`` location (``(repository)`` when file-less)."""
        if not self.file_path:
            return "(repository)"
        if self.line_range is None:
            return self.file_path
        return f"{self.file_path}:{self.line_range}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "severity": self.severity.value,
            "file_path": self.file_path,
            "line_range": [self.line_range.start, self.line_range.end] if self.line_range else None,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "evidence": self.evidence,
            "recommendation": self.recommendation,
            "reference": self.reference,
        }


@dataclass(frozen=True, slots=True)
class MergedFinding:
    """A deduplicated finding: a representative plus every raw finding folded into it."""

    finding: Finding
    merged_from: tuple[str, ...]
    effective_severity: Severity
    sources: tuple[Finding, ...] = ()

    @property
    def severity(self) -> Severity:
        return self.effective_severity

    @property
    def agent_id(self) -> str:
        return self.finding.agent_id

    @property
    def file_path(self) -> str:
        return self.finding.file_path

    @property
    def line_range(self) -> LineRange | None:
        return self.finding.line_range

    @property
    def category(self) -> str:
        return self.finding.category

    @property
    def title(self) -> str:
        return self.finding.title

    @property
    def description(self) -> str:
        return self.finding.description

    @property
    def evidence(self) -> str | None:
        return self.finding.evidence

    @property
    def recommendation(self) -> str:
        return self.finding.recommendation

    @property
    def reference(self) -> str | None:
        return self.finding.reference

    @property
    def location(self) -> str:
        return self.finding.location

    @property
    def was_merged(self) -> bool:
        return len(self.sources) > 1


def _read_non_negative_int(data: Mapping[str, Any], key: str, default: int, section: str) -> int:
    if key not in data or data[key] is None:
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            f"{section}.{key} must be an integer, got {value!r}", key=f"{section}.{key}"
        )
    if value < 0:
        raise ConfigurationError(
            f"{section}.{key} must be >= 0, got {value}", key=f"{section}.{key}"
        )
    return value


def _reject_unknown_keys(data: Mapping[str, Any], known: tuple[str, ...], section: str) -> None:
    for key in data:
        if key not in known:
            valid = ", ".join(known)
            raise ConfigurationError(
                f"Unknown key '{section}.{key}'. Valid keys: {valid}", key=f"{section}.{key}"
            )


@dataclass(frozen=True, slots=True)
class VerdictThresholds:
    """Severity-count limits for the verdict rules (a count must *exceed* a limit to trigger)."""

    fail_if_critical_gt: int = 0
    fail_if_high_gt: int = 0
    warn_if_high_gt: int = 0
    warn_if_medium_gt: int = 3

    FIELDS = ("fail_if_critical_gt", "fail_if_high_gt", "warn_if_high_gt", "warn_if_medium_gt")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "VerdictThresholds":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigurationError("thresholds must be a mapping", key="thresholds")
        _reject_unknown_keys(data, cls.FIELDS, "thresholds")
        defaults = cls()
        return cls(
            **{
                name: _read_non_negative_int(data, name, getattr(defaults, name), "thresholds")
                for name in cls.FIELDS
            }
        )

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.FIELDS}


MERGE_STRATEGIES = ("transitive", "pairwise")
SCORER_NAMES = ("sequence", "exact")


@dataclass(frozen=True, slots=True)
class DedupSettings:
    """Tunable parameters for the deduplicator."""

    similarity_threshold: float = 0.6
    merge_strategy: str = "transitive"
    scorer: str = "sequence"

    FIELDS = ("similarity_threshold", "merge_strategy", "scorer")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "DedupSettings":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigurationError("dedup must be a mapping", key="dedup")
        _reject_unknown_keys(data, cls.FIELDS, "dedup")
        defaults = cls()

        threshold = data.get("similarity_threshold", defaults.similarity_threshold)
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise ConfigurationError(
                f"dedup.similarity_threshold must be a number, got {threshold!r}",
                key="dedup.similarity_threshold",
            )
        if not 0.0 <= float(threshold) <= 1.0:
            raise ConfigurationError(
                f"dedup.similarity_threshold must be between 0 and 1, got {threshold}",
                key="dedup.similarity_threshold",
            )

        strategy = data.get("merge_strategy", defaults.merge_strategy)
        if strategy not in MERGE_STRATEGIES:
            raise ConfigurationError(
                f"dedup.merge_strategy must be one of {', '.join(MERGE_STRATEGIES)}, got {strategy!r}",
                key="dedup.merge_strategy",
            )

        scorer = data.get("scorer", defaults.scorer)
        if scorer not in SCORER_NAMES:
            raise ConfigurationError(
                f"dedup.scorer must be one of {', '.join(SCORER_NAMES)}, got {scorer!r}",
                key="dedup.scorer",
            )

        return cls(similarity_threshold=float(threshold), merge_strategy=strategy, scorer=scorer)

    def to_dict(self) -> dict[str, Any]:
        return {
            "similarity_threshold": self.similarity_threshold,
            "merge_strategy": self.merge_strategy,
            "scorer": self.scorer,
        }


class VerdictStatus(Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"

    @property
    def exit_code(self) -> int:
        """Process exit code for CI gating: only FAIL is non-zero."""
        return 1 if self is VerdictStatus.FAIL else 0


@dataclass(frozen=True, slots=True)
class Verdict:
    """Aggregate judgment plus the severity histogram it was derived from."""

    status: VerdictStatus
    counts: dict[Severity, int] = field(default_factory=dict)

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    @property
    def total(self) -> int:
        return sum(self.counts.values())


@dataclass(frozen=True, slots=True)
class Rejection:
    """A raw record the normalizer dropped, kept so it can be reported."""

    agent_id: str | None
    payload: Any
    reason: str


@dataclass(slots=True)
class AgentOutput:
    """Raw findings emitted by one agent for one review run."""

    agent_id: str
    findings: list[Any] = field(default_factory=list)
    error: str | None = None
