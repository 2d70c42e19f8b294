"""
CLI subcommand implementations for oversight.

Subcommands::

    oversight aggregate FILE [FILE ...] [--config C] [--format text|json] [--output O] [--core-url U]
    oversight config show [--config C]
    oversight serve [--host H] [--port P] [--reload]

Exit codes: 0 for PASS/WARN, 1 for FAIL, 2 for configuration or input errors.
"""

import argparse
import contextlib
import io
import json
import logging
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

from contracts.v1.adapters import build_aggregate_request
from contracts.v1.schemas import AggregateResponse
from core.domain import ConfigurationError
from core.pipeline import aggregate
from oversight.agents import AgentOutputError, load_agent_output
from oversight.config import CONFIG_PATH_ENV, OversightConfig, load_config
from oversight.core_client import CoreClient, CoreClientError
from oversight.report import assemble_report, exit_code_for

from .interface import print_report, render_json

EXIT_CONFIG_ERROR = 2


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(EXIT_CONFIG_ERROR)


def _load_config_or_exit(path: str | None) -> OversightConfig:
    try:
        return load_config(path)
    except ConfigurationError as e:
        _fail(str(e))


def _aggregate_remote(core_url: str, outputs, config: OversightConfig) -> AggregateResponse:
    request = build_aggregate_request(outputs, thresholds=config.thresholds, settings=config.dedup)
    client = CoreClient(base_url=core_url)
    response = client.aggregate(request)
    return response.model_copy(
        update={"meta": response.meta.model_copy(update={"config_source": config.source})}
    )


def cmd_aggregate(args) -> int:
    config = _load_config_or_exit(args.config)

    outputs = []
    for path in args.files:
        try:
            outputs.append(load_agent_output(path))
        except AgentOutputError as e:
            _fail(str(e))

    if args.core_url:
        try:
            report = _aggregate_remote(args.core_url, outputs, config)
        except (ConfigurationError, CoreClientError) as e:
            _fail(str(e))
    else:
        started = time.perf_counter()
        result = aggregate(outputs, thresholds=config.thresholds, settings=config.dedup)
        report = assemble_report(
            result,
            thresholds=config.thresholds,
            config_source=config.source,
            timings={"total_seconds": time.perf_counter() - started},
        )

    if args.format == "json":
        text = render_json(report)
    else:
        buffer = io.StringIO()
        with contextlib.redirect_stdout(buffer):
            print_report(report)
        text = buffer.getvalue()

    if args.output:
        try:
            Path(args.output).write_text(text, encoding="utf-8")
        except OSError as e:
            _fail(f"Cannot write report to {args.output}: {e}")
        print(f"✓ Report written to {args.output}")
    else:
        print(text)

    return exit_code_for(report.verdict.status)


def cmd_config(args) -> int:
    config = _load_config_or_exit(args.config)
    source = config.source or f"built-in defaults (no .oversight.yml found, {CONFIG_PATH_ENV} unset)"
    print(f"# source: {source}")
    print(json.dumps(config.to_dict(), indent=2))
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    print("\n  oversight — core API")
    print(f"  Listening on http://{args.host}:{args.port}\n")
    uvicorn.run(
        "core.api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="oversight",
        description="Aggregate review-agent findings into a ranked report and a PASS/WARN/FAIL verdict",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- aggregate ---
    p_aggregate = subparsers.add_parser("aggregate", help="Aggregate agent output files")
    p_aggregate.add_argument("files", nargs="+", help="Agent output JSON files (one per agent)")
    p_aggregate.add_argument("--config", help="Path to .oversight.yml (default: auto-detect)")
    p_aggregate.add_argument(
        "--format", choices=["text", "json"], default="text",
        help="Report format (default: text)",
    )
    p_aggregate.add_argument("--output", help="Write the report to this file instead of stdout")
    p_aggregate.add_argument("--core-url", help="Aggregate through a remote core API instead of locally")

    # --- config ---
    p_config = subparsers.add_parser("config", help="Inspect configuration")
    sp_config = p_config.add_subparsers(dest="config_action", required=True)
    sp_show = sp_config.add_parser("show", help="Show the effective configuration")
    sp_show.add_argument("--config", help="Path to .oversight.yml (default: auto-detect)")

    # --- serve ---
    p_serve = subparsers.add_parser("serve", help="Run the core aggregation API")
    p_serve.add_argument("--port", type=int, default=8000, help="Port to serve on (default: 8000)")
    p_serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    p_serve.add_argument("--reload", action="store_true", help="Enable auto-reload for development")

    return parser


def main(argv=None) -> int:
    """Entry point for the CLI; returns the process exit code."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "aggregate":
        return cmd_aggregate(args)
    if args.command == "config":
        return cmd_config(args)
    if args.command == "serve":
        return cmd_serve(args)
    parser.error(f"Unknown command: {args.command}")


def run():
    """Console-script wrapper."""
    sys.exit(main())
