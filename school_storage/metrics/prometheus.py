"""
Prometheus metrics for storage monitoring.

This module defines all Prometheus metrics used by the storage layer:
- Storage operation metrics (count, duration) per backend call
- Bucket content metrics (object count, bytes) from audits
- Maintenance metrics (cleanup deletions, integrity verification)
"""
from prometheus_client import Counter, Gauge, Histogram


# ============================================================================
# Storage Operation Metrics
# ============================================================================

storage_operations_total = Counter(
    "storage_operations_total",
    "Total number of storage operations",
    ["operation", "status"],  # operation: upload, delete, stat, list, presign, bucket_exists, make_bucket, set_policy
)

storage_operation_duration_seconds = Histogram(
    "storage_operation_duration_seconds",
    "Duration of storage operations",
    ["operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1, 2, 5, 10, 30],
)

storage_uploaded_bytes_total = Counter(
    "storage_uploaded_bytes_total",
    "Total bytes written to object storage",
    ["bucket"],
)


# ============================================================================
# Bucket Metrics
# ============================================================================

storage_bucket_objects = Gauge(
    "storage_bucket_objects",
    "Number of objects in a bucket at last audit",
    ["bucket"],
)

storage_bucket_bytes = Gauge(
    "storage_bucket_bytes",
    "Total size of objects in a bucket at last audit",
    ["bucket"],
)


# ============================================================================
# Maintenance Metrics
# ============================================================================

storage_cleanup_deleted_total = Counter(
    "storage_cleanup_deleted_total",
    "Number of objects deleted by retention cleanup",
    ["bucket"],
)

storage_cleanup_errors_total = Counter(
    "storage_cleanup_errors_total",
    "Number of per-object failures during retention cleanup",
    ["bucket"],
)

storage_integrity_checks_total = Counter(
    "storage_integrity_checks_total",
    "Stored references verified against the backend",
    ["result"],  # result: existing, missing
)


# ============================================================================
# Helper Functions
# ============================================================================

def record_storage_operation(operation: str, success: bool, duration: float):
    """Record storage operation metrics."""
    status = "success" if success else "failed"
    storage_operations_total.labels(operation=operation, status=status).inc()
    storage_operation_duration_seconds.labels(operation=operation).observe(duration)


def record_upload_bytes(bucket: str, size: int):
    """Record bytes written by an upload."""
    storage_uploaded_bytes_total.labels(bucket=bucket).inc(size)


def update_bucket_metrics(bucket: str, object_count: int, total_bytes: int):
    """Update bucket content gauges."""
    storage_bucket_objects.labels(bucket=bucket).set(object_count)
    storage_bucket_bytes.labels(bucket=bucket).set(total_bytes)


def record_cleanup(bucket: str, deleted: int, errors: int):
    """Record the outcome of a cleanup pass."""
    if deleted:
        storage_cleanup_deleted_total.labels(bucket=bucket).inc(deleted)
    if errors:
        storage_cleanup_errors_total.labels(bucket=bucket).inc(errors)


def record_integrity_checks(existing: int, missing: int):
    """Record the outcome of a batch verification."""
    if existing:
        storage_integrity_checks_total.labels(result="existing").inc(existing)
    if missing:
        storage_integrity_checks_total.labels(result="missing").inc(missing)
