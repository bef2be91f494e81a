"""
Metrics module for storage monitoring.

This module provides Prometheus metrics collection and helper functions.
"""
from school_storage.metrics.prometheus import (
    # Storage Operation Metrics
    storage_operations_total,
    storage_operation_duration_seconds,
    storage_uploaded_bytes_total,

    # Bucket Metrics
    storage_bucket_objects,
    storage_bucket_bytes,

    # Maintenance Metrics
    storage_cleanup_deleted_total,
    storage_cleanup_errors_total,
    storage_integrity_checks_total,

    # Helper Functions
    record_storage_operation,
    record_upload_bytes,
    update_bucket_metrics,
    record_cleanup,
    record_integrity_checks,
)

__all__ = [
    "storage_operations_total",
    "storage_operation_duration_seconds",
    "storage_uploaded_bytes_total",
    "storage_bucket_objects",
    "storage_bucket_bytes",
    "storage_cleanup_deleted_total",
    "storage_cleanup_errors_total",
    "storage_integrity_checks_total",
    "record_storage_operation",
    "record_upload_bytes",
    "update_bucket_metrics",
    "record_cleanup",
    "record_integrity_checks",
]
