"""Observability package for the RCA knowledge base."""

from .logging import setup_logging, get_structured_logger, JSONFormatter, ColoredFormatter
from .prometheus_metrics import (
    setup_prometheus_metrics,
    record_search_metrics,
    record_llm_metrics,
    record_record_operation,
    record_error,
    update_system_metrics,
    get_metrics_summary,
    PrometheusMiddleware,
    rca_registry
)

__all__ = [
    'setup_logging',
    'JSONFormatter',
    'ColoredFormatter',
    'get_structured_logger',
    'setup_prometheus_metrics',
    'record_search_metrics',
    'record_llm_metrics',
    'record_record_operation',
    'record_error',
    'update_system_metrics',
    'get_metrics_summary',
    'PrometheusMiddleware',
    'rca_registry'
]
