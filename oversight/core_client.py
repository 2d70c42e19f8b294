"""
HTTP client for a remote aggregation core (``oversight serve`` or a shared deployment).

The remote path must behave like a local run: configuration problems the core
rejects with HTTP 400 come back as ``ConfigurationError`` (same message, same
key), and anything that prevents a valid report from arriving is a
``CoreClientError``.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any
from urllib import error, request

from pydantic import ValidationError

from contracts.v1.schemas import AggregateRequest, AggregateResponse
from core.domain import ConfigurationError

logger = logging.getLogger(__name__)

# Gateway hiccups and overload are worth another attempt; other statuses are final.
RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class CoreClientError(Exception):
    """The remote core could not produce a usable report."""


class CoreClientHTTPError(CoreClientError):
    """The core answered with a non-success status."""

    def __init__(self, status_code: int, detail: Any, path: str = ""):
        super().__init__(f"Core API {path or 'request'} returned HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.path = path


class CoreUnavailableError(CoreClientError):
    """The core never answered (connection refused, DNS failure, timeout)."""

    def __init__(self, base_url: str, attempts: int, reason: Any):
        noun = "attempt" if attempts == 1 else "attempts"
        super().__init__(f"Core API at {base_url} unreachable after {attempts} {noun}: {reason}")
        self.base_url = base_url
        self.attempts = attempts


def _error_detail(exc: error.HTTPError) -> Any:
    """FastAPI puts the useful part under ``detail``; fall back to the raw body or reason."""
    body = ""
    if exc.fp is not None:
        try:
            body = exc.read().decode("utf-8")
        except (OSError, UnicodeDecodeError):
            body = ""
    if not body:
        return exc.reason or "HTTP error"
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        return body
    if isinstance(payload, dict) and "detail" in payload:
        return payload["detail"]
    return payload


def _configuration_error(detail: Any) -> ConfigurationError:
    if isinstance(detail, dict):
        return ConfigurationError(str(detail.get("message", detail)), key=detail.get("key"))
    return ConfigurationError(str(detail))


class CoreClient:
    """Talks to ``/health`` and ``/v1/aggregate`` on a remote core."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 30.0,
        max_attempts: int = 3,
        backoff_seconds: float = 0.25,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = max(0.0, backoff_seconds)

    def health(self) -> dict[str, Any]:
        return self._call("GET", "/health")

    def aggregate(self, req: AggregateRequest) -> AggregateResponse:
        """Aggregate remotely and return the validated report.

        Raises ``ConfigurationError`` when the core rejects the thresholds or
        dedup settings, ``CoreClientError`` for every other failure.
        """
        try:
            data = self._call("POST", "/v1/aggregate", req.model_dump(mode="json"))
        except CoreClientHTTPError as e:
            if e.status_code == 400:
                raise _configuration_error(e.detail) from e
            raise

        try:
            return AggregateResponse.model_validate(data)
        except ValidationError as e:
            raise CoreClientError(
                f"Core API returned a malformed report ({e.error_count()} validation errors)"
            ) from e

    def _open(self, method: str, path: str, body: bytes | None) -> bytes:
        req = request.Request(
            f"{self.base_url}{path}",
            data=body,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            method=method,
        )
        with request.urlopen(req, timeout=self.timeout_seconds) as resp:
            return resp.read()

    def _call(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        body = json.dumps(payload).encode("utf-8") if payload is not None else None

        attempt = 0
        while True:
            attempt += 1
            last_attempt = attempt >= self.max_attempts
            try:
                raw = self._open(method, path, body)
            except error.HTTPError as e:
                if e.code in RETRYABLE_STATUS and not last_attempt:
                    logger.warning("Core API %s %s returned %d, retrying", method, path, e.code)
                    self._backoff(attempt)
                    continue
                raise CoreClientHTTPError(e.code, _error_detail(e), path) from e
            except (error.URLError, TimeoutError) as e:
                if not last_attempt:
                    logger.warning("Core API %s %s unreachable (%s), retrying", method, path, e)
                    self._backoff(attempt)
                    continue
                raise CoreUnavailableError(self.base_url, attempt, getattr(e, "reason", e)) from e

            if not raw:
                return {}
            try:
                return json.loads(raw.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise CoreClientError(f"Core API {path} returned invalid JSON: {e}") from e

    def _backoff(self, attempt: int) -> None:
        if self.backoff_seconds:
            time.sleep(self.backoff_seconds * attempt)
