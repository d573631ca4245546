"""
Prometheus metrics module for MentorHub.

Service-level metrics are fed by the ``@measure_operation`` decorator on
``BaseService``; domain counters cover money movement, slot contention and
booking transitions.
"""

from threading import Lock
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "mentorhub_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "mentorhub_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "mentorhub_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

ledger_transactions_total = Counter(
    "mentorhub_ledger_transactions_total",
    "Ledger transactions recorded, by type and status",
    ["type", "status"],
    registry=REGISTRY,
)

slot_claim_conflicts_total = Counter(
    "mentorhub_slot_claim_conflicts_total",
    "Slot claims that lost a race or hit an already-booked slot",
    registry=REGISTRY,
)

slots_created_total = Counter(
    "mentorhub_slots_created_total",
    "Time slots created, by creation mode",
    ["mode"],
    registry=REGISTRY,
)

booking_transitions_total = Counter(
    "mentorhub_booking_transitions_total",
    "Booking status transitions",
    ["from_status", "to_status"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _lock: Lock = Lock()

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'LedgerService')
            operation: Operation/method name (e.g., 'debit')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    # Domain helpers
    @staticmethod
    def record_ledger_transaction(tx_type: str, status: str) -> None:
        ledger_transactions_total.labels(type=tx_type, status=status).inc()

    @staticmethod
    def inc_slot_claim_conflict() -> None:
        slot_claim_conflicts_total.inc()

    @staticmethod
    def inc_slots_created(mode: str, count: int) -> None:
        if count > 0:
            slots_created_total.labels(mode=mode).inc(count)

    @staticmethod
    def record_booking_transition(from_status: str, to_status: str) -> None:
        booking_transitions_total.labels(from_status=from_status, to_status=to_status).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        with PrometheusMetrics._lock:
            return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()
