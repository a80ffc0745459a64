"""Prometheus metrics integration for the RCA API."""

from prometheus_client import Counter, Histogram, Gauge, Info, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.core import CollectorRegistry
from fastapi import FastAPI, Request, Response
import re
import time
from typing import Optional, Dict, Any
import logging
import psutil

logger = logging.getLogger(__name__)

rca_registry = CollectorRegistry()

# Request metrics
request_count = Counter(
    'rca_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=rca_registry
)

request_duration = Histogram(
    'rca_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=rca_registry
)

# Search metrics
search_requests = Counter(
    'rca_search_requests_total',
    'Total number of record searches by strategy',
    ['operation', 'strategy'],
    registry=rca_registry
)

search_duration = Histogram(
    'rca_search_duration_seconds',
    'Record search duration in seconds',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0],
    registry=rca_registry
)

search_results_count = Histogram(
    'rca_search_results_count',
    'Number of records returned by a search',
    ['operation'],
    buckets=[0, 1, 2, 5, 10, 20],
    registry=rca_registry
)

# LLM metrics
llm_requests = Counter(
    'rca_llm_requests_total',
    'Total number of LLM provider calls',
    ['operation', 'status'],
    registry=rca_registry
)

llm_duration = Histogram(
    'rca_llm_request_duration_seconds',
    'LLM provider call duration in seconds',
    ['operation'],
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=rca_registry
)

# Record metrics
record_operations = Counter(
    'rca_record_operations_total',
    'Total number of record write operations',
    ['operation'],
    registry=rca_registry
)

# System metrics
system_memory_usage = Gauge(
    'rca_system_memory_usage_bytes',
    'System memory usage in bytes',
    registry=rca_registry
)

system_cpu_usage = Gauge(
    'rca_system_cpu_usage_percent',
    'System CPU usage percentage',
    registry=rca_registry
)

app_info = Info(
    'rca_app_info',
    'RCA knowledge base application information',
    registry=rca_registry
)

# Error metrics
error_count = Counter(
    'rca_errors_total',
    'Total number of errors',
    ['error_type', 'component'],
    registry=rca_registry
)


class PrometheusMiddleware:
    """Middleware to collect Prometheus metrics for HTTP requests."""

    def __init__(self, app: FastAPI):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        method = request.method
        endpoint = self._normalize_endpoint(request.url.path)

        start_time = time.time()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            logger.error(f"Request processing error: {e}")
            error_count.labels(error_type=type(e).__name__, component="http").inc()
            raise
        finally:
            duration = time.time() - start_time
            request_count.labels(
                method=method,
                endpoint=endpoint,
                status_code=str(status_code)
            ).inc()
            request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality."""
        # Record ids are 32 hex chars
        path = re.sub(r'/[0-9a-f]{32}(?=/|$)', '/{id}', path)
        path = re.sub(r'/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}', '/{uuid}', path)
        path = re.sub(r'/\d+(?=/|$)', '/{id}', path)
        return path


def setup_prometheus_metrics(app: FastAPI, version: str = "unknown",
                             environment: str = "development") -> None:
    """Setup Prometheus metrics collection for FastAPI app."""
    app.add_middleware(PrometheusMiddleware)

    @app.get("/metrics", include_in_schema=False)
    async def metrics_endpoint():
        """Prometheus metrics endpoint."""
        update_system_metrics()
        return Response(generate_latest(rca_registry), media_type=CONTENT_TYPE_LATEST)

    app_info.info({'version': version, 'environment': environment})
    logger.info("Prometheus metrics configured")


def record_search_metrics(operation: str, strategy: str, duration: float, result_count: int) -> None:
    """Record a search and the strategy that served it (fulltext or substring)."""
    search_requests.labels(operation=operation, strategy=strategy).inc()
    search_duration.labels(operation=operation).observe(duration)
    search_results_count.labels(operation=operation).observe(result_count)


def record_llm_metrics(operation: str, duration: float, error: Optional[str] = None) -> None:
    """Record an LLM provider call."""
    status = "error" if error else "success"
    llm_requests.labels(operation=operation, status=status).inc()
    llm_duration.labels(operation=operation).observe(duration)
    if error:
        error_count.labels(error_type=error, component="llm").inc()


def record_record_operation(operation: str) -> None:
    record_operations.labels(operation=operation).inc()


def record_error(error_type: str, component: str) -> None:
    error_count.labels(error_type=error_type, component=component).inc()


def update_system_metrics() -> None:
    """Update system-level metrics."""
    try:
        system_memory_usage.set(psutil.virtual_memory().used)
        # Non-blocking: compares against the previous call
        system_cpu_usage.set(psutil.cpu_percent(interval=None))
    except Exception as e:
        logger.error(f"Error updating system metrics: {e}")
        error_count.labels(error_type="system_metrics_error", component="monitoring").inc()


def get_metrics_summary() -> Dict[str, Any]:
    """Get a summary of current counters, keyed by metric name."""
    summary: Dict[str, Any] = {}
    for metric in rca_registry.collect():
        if metric.type != "counter":
            continue
        summary[metric.name] = sum(
            sample.value for sample in metric.samples if sample.name.endswith("_total")
        )
    return summary
