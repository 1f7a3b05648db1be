"""Observability module for logging and metrics."""

import logging
import json
import sys
import time
from typing import Any, Dict
from datetime import datetime, timezone
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Request, Response

# Prometheus metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'Duration of HTTP requests in seconds',
    ['method', 'endpoint']
)

complaints_created_total = Counter(
    'complaints_created_total',
    'Total number of complaints created',
    ['priority']
)

status_transitions_total = Counter(
    'complaint_status_transitions_total',
    'Total number of complaint status transitions',
    ['old_status', 'new_status']
)

classifications_total = Counter(
    'classifications_total',
    'Classification results by origin',
    ['origin']
)

sla_breached_complaints = Gauge(
    'sla_breached_complaints',
    'Number of open complaints past their SLA deadline'
)


# Label for requests that matched no route (404s on arbitrary paths)
UNMATCHED_ENDPOINT = "unmatched"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'extra'):
            log_data.update(record.extra)

        return json.dumps(log_data)


def setup_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    if json_output:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(JSONFormatter())

    logger = logging.getLogger("complaint_engine")
    logger.setLevel(level)

    logger.info("Logging configured (json=%s)", json_output)


def setup_metrics_middleware(app):
    """Add Prometheus metrics middleware to FastAPI app."""
    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time

        # Route template keeps label cardinality bounded
        route = request.scope.get("route")
        endpoint = getattr(route, "path", UNMATCHED_ENDPOINT)
        method = request.method
        status = response.status_code

        http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
        http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

        return response


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def get_health_check(complaint_count: int, unread_notifications: int) -> Dict[str, Any]:
    """Get health check information."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "complaints": complaint_count,
        "unread_notifications": unread_notifications,
    }
