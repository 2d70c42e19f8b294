"""Platform layer: configuration, agent fan-out, reporting, and the remote core client."""

__version__ = "1.0.0"

from .agents import (
    AgentOutputError,
    collect_agent_outputs,
    load_agent_output,
    parse_agent_output,
    run_review,
)
from .config import OversightConfig, load_config
from .core_client import CoreClient, CoreClientError, CoreClientHTTPError, CoreUnavailableError
from .report import assemble_report, exit_code_for, summary_line

__all__ = [
    "__version__",
    "AgentOutputError",
    "CoreClient",
    "CoreClientError",
    "CoreClientHTTPError",
    "CoreUnavailableError",
    "OversightConfig",
    "assemble_report",
    "collect_agent_outputs",
    "exit_code_for",
    "load_agent_output",
    "load_config",
    "parse_agent_output",
    "run_review",
    "summary_line",
]
