"""Prometheus text-format metrics served at ``/metrics``.

No prometheus_client: the handful of series below are kept in plain dicts
behind one lock and rendered on scrape.

Series (all prefixed ``google_search_mcp_``):

- ``http_requests_total{method,path,status}``
- ``http_request_duration_seconds{method,path}`` (histogram; for SSE this
  is time to the first response byte)
- ``tool_calls_total{tool,status}``, ``status`` being success or error
- ``tool_call_duration_seconds{tool}`` (histogram)
- ``active_connections``: HTTP requests in flight
- ``active_sessions``: open SSE sessions, read from the session manager
"""

from __future__ import annotations

import re
import threading
import time
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

PREFIX = "google_search_mcp"

# Upper bounds in seconds; tool calls can run up to the 30s timeout
LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)

# Path segments replaced by {id}: session ids, UUIDs, integers
_ID_SEGMENT = re.compile(r"^(?:[0-9a-f]{32}|[0-9a-f]{8}(?:-[0-9a-f]{4}){3}-[0-9a-f]{12}|\d+)$")


@dataclass
class HistogramData:
    """Per-bucket (non-cumulative) counts; cumulated when rendered."""

    buckets: dict[float, int] = field(default_factory=lambda: defaultdict(int))
    sum: float = 0.0
    count: int = 0

    def observe(self, value: float) -> None:
        self.sum += value
        self.count += 1
        bucket = next((b for b in LATENCY_BUCKETS if value <= b), None)
        if bucket is not None:
            self.buckets[bucket] += 1

    def render(self, metric: str, labels: str) -> Iterable[str]:
        running = 0
        for bound in LATENCY_BUCKETS:
            running += self.buckets.get(bound, 0)
            yield f'{metric}_bucket{{{labels},le="{bound}"}} {running}'
        yield f'{metric}_bucket{{{labels},le="+Inf"}} {self.count}'
        yield f"{metric}_sum{{{labels}}} {self.sum:.6f}"
        yield f"{metric}_count{{{labels}}} {self.count}"


def _family(name: str, kind: str, help_text: str) -> list[str]:
    return [f"# HELP {PREFIX}_{name} {help_text}", f"# TYPE {PREFIX}_{name} {kind}"]


class MetricsCollector:
    """Request and tool call metrics; safe to update from any thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests: dict[tuple[str, str, int], int] = defaultdict(int)
        self._request_latency: dict[tuple[str, str], HistogramData] = defaultdict(HistogramData)
        self._tool_calls: dict[tuple[str, str], int] = defaultdict(int)
        self._tool_latency: dict[str, HistogramData] = defaultdict(HistogramData)
        self._in_flight = 0

    def record_request(self, method: str, path: str, status_code: int, duration_seconds: float) -> None:
        path = self._normalize_path(path)
        with self._lock:
            self._requests[(method, path, status_code)] += 1
            self._request_latency[(method, path)].observe(duration_seconds)

    def record_tool_call(self, tool_name: str, success: bool, duration_seconds: float) -> None:
        status = "success" if success else "error"
        with self._lock:
            self._tool_calls[(tool_name, status)] += 1
            self._tool_latency[tool_name].observe(duration_seconds)

    def tool_call_count(self, tool_name: str, status: str) -> int:
        with self._lock:
            return self._tool_calls.get((tool_name, status), 0)

    @staticmethod
    def _normalize_path(path: str) -> str:
        """Collapse id-like segments so each session doesn't get its own series."""
        return "/".join("{id}" if _ID_SEGMENT.match(part) else part for part in path.split("/"))

    def increment_connections(self) -> None:
        with self._lock:
            self._in_flight += 1

    def decrement_connections(self) -> None:
        with self._lock:
            self._in_flight = max(0, self._in_flight - 1)

    def get_active_connections(self) -> int:
        with self._lock:
            return self._in_flight

    def format_prometheus(self, active_sessions: int | None = None) -> str:
        """Render every series in Prometheus text exposition format.

        Args:
            active_sessions: Open SSE sessions at scrape time; the gauge is
                omitted when None
        """
        with self._lock:
            lines = _family("http_requests_total", "counter", "Total HTTP requests")
            for (method, path, status), count in sorted(self._requests.items()):
                lines.append(f'{PREFIX}_http_requests_total{{method="{method}",path="{path}",status="{status}"}} {count}')

            lines += ["", *_family("http_request_duration_seconds", "histogram", "HTTP request latency")]
            for (method, path), histogram in sorted(self._request_latency.items()):
                labels = f'method="{method}",path="{path}"'
                lines.extend(histogram.render(f"{PREFIX}_http_request_duration_seconds", labels))

            lines += ["", *_family("tool_calls_total", "counter", "Tool calls by tool and outcome")]
            for (tool, status), count in sorted(self._tool_calls.items()):
                lines.append(f'{PREFIX}_tool_calls_total{{tool="{tool}",status="{status}"}} {count}')

            lines += ["", *_family("tool_call_duration_seconds", "histogram", "Tool call latency")]
            for tool, histogram in sorted(self._tool_latency.items()):
                lines.extend(histogram.render(f"{PREFIX}_tool_call_duration_seconds", f'tool="{tool}"'))

            lines += ["", *_family("active_connections", "gauge", "Requests currently in flight")]
            lines.append(f"{PREFIX}_active_connections {self._in_flight}")

        if active_sessions is not None:
            lines += ["", *_family("active_sessions", "gauge", "Open SSE sessions")]
            lines.append(f"{PREFIX}_active_sessions {active_sessions}")

        lines.append("")
        return "\n".join(lines)


_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


class MetricsMiddleware:
    """Counts and times every HTTP request except the scrape itself.

    Plain ASGI rather than BaseHTTPMiddleware so event streams are passed
    through unbuffered. The request is recorded when its response starts.
    """

    def __init__(self, app: ASGIApp, skip_paths: tuple[str, ...] = ("/metrics",)) -> None:
        self.app = app
        self.skip_paths = skip_paths

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"] in self.skip_paths:
            await self.app(scope, receive, send)
            return

        collector = get_metrics_collector()
        method, path = scope["method"], scope["path"]
        started = time.perf_counter()
        recorded = False

        async def timed_send(message: Message) -> None:
            nonlocal recorded
            if message["type"] == "http.response.start" and not recorded:
                recorded = True
                collector.record_request(method, path, message["status"], time.perf_counter() - started)
            await send(message)

        collector.increment_connections()
        try:
            await self.app(scope, receive, timed_send)
        except Exception:
            if not recorded:
                collector.record_request(method, path, 500, time.perf_counter() - started)
            raise
        finally:
            collector.decrement_connections()


async def metrics_endpoint(request: Request) -> PlainTextResponse:
    sessions = getattr(request.app.state, "sessions", None)
    active_sessions = sessions.active_count if sessions is not None else None
    text = get_metrics_collector().format_prometheus(active_sessions=active_sessions)
    return PlainTextResponse(text, media_type="text/plain; version=0.0.4; charset=utf-8")
