"""Metrics endpoint and request tracking middleware.

Tracks: request count, latency, active requests, error rate, and the
outcomes of moderation actions (approved, rejected, conflicts...).
"""
import time
import logging
from collections import defaultdict

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse, Response

logger = logging.getLogger(__name__)

# In-memory, per process
_metrics: dict[str, float] = defaultdict(float)
_histograms: dict[str, list[float]] = defaultdict(list)
_moderation: dict[str, float] = defaultdict(float)

# Keep the latency sample bounded
_MAX_SAMPLES = 10_000


def record_moderation(outcome: str, count: int = 1) -> None:
    """Count a moderation outcome, e.g. "approved" or "moderation-edit-conflict"."""
    _moderation[outcome] += count


class MetricsMiddleware(BaseHTTPMiddleware):
    """Track request metrics."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        _metrics["http_requests_active"] += 1

        try:
            response = await call_next(request)
            status = response.status_code
        except Exception:
            status = 500
            _metrics["http_requests_errors_total"] += 1
            raise
        finally:
            duration = time.time() - start
            _metrics["http_requests_active"] -= 1
            _metrics["http_requests_total"] += 1

            durations = _histograms["http_request_duration_seconds"]
            durations.append(duration)
            if len(durations) > _MAX_SAMPLES:
                del durations[: len(durations) - _MAX_SAMPLES]

            _metrics[f"http_requests_by_status_{status // 100}xx"] += 1

            if duration > 0.5:
                logger.warning("slow_request", extra={
                    "method": request.method, "path": request.url.path,
                    "duration_ms": round(duration * 1000, 2),
                    "status": status,
                })

        return response


def _percentile(data: list[float], p: float) -> float:
    if not data:
        return 0.0
    sorted_data = sorted(data)
    idx = int(len(sorted_data) * p / 100)
    return sorted_data[min(idx, len(sorted_data) - 1)]


def render_metrics() -> str:
    durations = _histograms.get("http_request_duration_seconds", [])
    lines = [
        "# HELP http_requests_total Total HTTP requests",
        "# TYPE http_requests_total counter",
        f'http_requests_total {_metrics["http_requests_total"]:.0f}',
        "",
        "# HELP http_requests_active Active HTTP requests",
        "# TYPE http_requests_active gauge",
        f'http_requests_active {_metrics["http_requests_active"]:.0f}',
        "",
        "# HELP http_requests_errors_total Total HTTP errors",
        "# TYPE http_requests_errors_total counter",
        f'http_requests_errors_total {_metrics["http_requests_errors_total"]:.0f}',
        "",
        "# HELP http_request_duration_seconds Request duration",
        "# TYPE http_request_duration_seconds summary",
    ]
    for q in (50, 90, 99):
        lines.append(f'http_request_duration_seconds{{quantile="0.{q}"}} {_percentile(durations, q):.6f}')
    lines += [
        f"http_request_duration_seconds_count {len(durations)}",
        "",
        "# HELP http_requests_by_status HTTP requests by status class",
        "# TYPE http_requests_by_status counter",
    ]
    for cls in ("2xx", "3xx", "4xx", "5xx"):
        lines.append(f'http_requests_by_status{{status="{cls}"}} {_metrics[f"http_requests_by_status_{cls}"]:.0f}')
    lines += [
        "",
        "# HELP moderation_actions_total Moderation actions by outcome",
        "# TYPE moderation_actions_total counter",
    ]
    for outcome, value in sorted(_moderation.items()):
        lines.append(f'moderation_actions_total{{outcome="{outcome}"}} {value:.0f}')
    return "\n".join(lines) + "\n"


def setup_metrics(app: FastAPI) -> None:
    """Register the /metrics endpoint."""

    @app.get("/metrics", tags=["monitoring"], include_in_schema=False)
    async def metrics_endpoint():
        return PlainTextResponse(render_metrics(), media_type="text/plain")
