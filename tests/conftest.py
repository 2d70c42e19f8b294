"""
Shared fixtures for oversight tests.
"""

import json

import pytest

from core.domain import Finding, LineRange, Severity


@pytest.fixture
def make_raw():
    """Factory for raw agent records with sensible defaults.

    Usage:
        make_raw(severity="CRITICAL", line_range=[10, 12])
    """
    def _make(**overrides):
        record = {
            "agent_id": "security-reviewer",
            "severity": "HIGH",
            "file_path": "src/auth.py",
            "line_range": [10, 12],
            "category": "Hardcoded Credentials",
            "title": "API key committed to source",
            "description": "A production API key is assigned to a module-level constant.",
            "evidence": 'API_KEY = "sk-live-123"',
            "recommendation": "Load the key from the environment or a secret manager.",
            "reference": "CWE-798",
        }
        record.update(overrides)
        return {k: v for k, v in record.items() if v is not ...}
    return _make


@pytest.fixture
def make_finding():
    """Factory for already-normalized ``Finding`` objects."""
    def _make(
        agent_id="security-reviewer",
        severity=Severity.HIGH,
        file_path="src/auth.py",
        line_range=(10, 12),
        category="Hardcoded Credentials",
        title="API key committed to source",
        **kwargs,
    ):
        return Finding(
            agent_id=agent_id,
            severity=severity,
            file_path=file_path,
            category=category,
            title=title,
            line_range=LineRange(*line_range) if line_range else None,
            **kwargs,
        )
    return _make


@pytest.fixture
def overlapping_credential_findings(make_raw):
    """Two agents flag the same hardcoded secret (scenario: HIGH + CRITICAL merge)."""
    return {
        "security-reviewer": [
            make_raw(severity="HIGH", line_range=[10, 12], category="Hardcoded Credentials"),
        ],
        "secrets-scanner": [
            make_raw(
                agent_id="secrets-scanner",
                severity="CRITICAL",
                line_range=[11, 14],
                category="Hardcoded Secret",
                title="Live secret in source file",
            ),
        ],
    }


@pytest.fixture
def sample_agent_outputs(make_raw):
    """A realistic multi-agent run, including one malformed record."""
    return {
        "security-reviewer": [
            make_raw(),
            make_raw(
                severity="MEDIUM",
                file_path="src/api/views.py",
                line_range=[40, 44],
                category="Missing Input Validation",
                title="Query parameter used without validation",
            ),
        ],
        "secrets-scanner": [
            make_raw(
                agent_id="secrets-scanner",
                severity="critical",
                line_range=[11, 11],
                category="hardcoded-secret",
                title="Secret literal detected",
            ),
        ],
        "accessibility-reviewer": [
            make_raw(
                agent_id="accessibility-reviewer",
                severity="LOW",
                file_path="web/templates/login.html",
                line_range=[7, 7],
                category="Missing Alt Text",
                title="Logo image has no alt attribute",
                reference=None,
            ),
            make_raw(agent_id="accessibility-reviewer", severity="Critikal"),
        ],
    }


@pytest.fixture
def write_agent_file(tmp_path):
    """Write an agent output JSON file and return its path."""
    def _write(name: str, payload) -> str:
        path = tmp_path / name
        text = payload if isinstance(payload, str) else json.dumps(payload)
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write
