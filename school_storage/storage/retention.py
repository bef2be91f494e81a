"""
Storage Retention Service

Deletes objects older than a retention window.
Implements:
- Age-based deletion with per-object error collection
- Dry-run mode for previewing a cleanup
- Prefix narrowing for date-organized buckets
- Cleanup reporting across all managed buckets
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any

from school_storage.metrics import record_cleanup
from school_storage.storage.audit import AuditReporter
from school_storage.storage.buckets import DATE_ORGANIZED_BUCKETS
from school_storage.storage.gateway import StorageGateway, StoredObject

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 90


@dataclass
class CleanupResult:
    """
    Cleanup operation result
    """
    bucket: str
    success: bool
    deleted: int = 0
    scanned: int = 0
    space_freed_bytes: int = 0
    errors: Optional[List[str]] = None
    duration_seconds: float = 0.0
    dry_run: bool = False

    @property
    def space_freed_mb(self) -> float:
        """Get freed space in MB"""
        return self.space_freed_bytes / (1024 ** 2)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'bucket': self.bucket,
            'success': self.success,
            'deleted': self.deleted,
            'scanned': self.scanned,
            'space_freed_bytes': self.space_freed_bytes,
            'space_freed_mb': round(self.space_freed_mb, 2),
            'errors': self.errors,
            'duration_seconds': round(self.duration_seconds, 2),
            'dry_run': self.dry_run,
        }


@dataclass
class CleanupPaths:
    """
    Cutoff date and key prefixes to scan for a cleanup
    """
    bucket: str
    cutoff_date: datetime
    search_prefixes: List[str] = field(default_factory=list)


def _cutoff(older_than_days: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=older_than_days)


def is_older_than(last_modified: Optional[datetime], cutoff: datetime) -> bool:
    """
    Check if an object was last modified strictly before the cutoff

    Objects without a timestamp are never considered old.
    """
    if last_modified is None:
        return False
    if last_modified.tzinfo is None:
        last_modified = last_modified.replace(tzinfo=timezone.utc)
    return last_modified < cutoff


def generate_cleanup_paths(bucket: str, older_than_days: int = DEFAULT_RETENTION_DAYS) -> CleanupPaths:
    """
    Derive the key prefixes covering the cutoff month

    Only year/month organized buckets get a prefix; for the others the
    list is empty and the caller has to scan the whole bucket.
    """
    cutoff_date = _cutoff(older_than_days)
    prefixes = []

    if bucket in DATE_ORGANIZED_BUCKETS:
        # Keys carry local-time year/month folders
        prefixes.append(cutoff_date.astimezone().strftime("%Y/%m/"))

    return CleanupPaths(bucket=bucket, cutoff_date=cutoff_date, search_prefixes=prefixes)


def get_cleanup_date_threshold(days_ago: int) -> str:
    """Cutoff date as YYYY-MM-DD"""
    return _cutoff(days_ago).strftime("%Y-%m-%d")


class RetentionManager:
    """
    Retention-based cleanup for MinIO buckets

    Deletions run one at a time so each failure is attributed to its
    object; a failing object never stops the rest of the pass.
    """

    def __init__(self, gateway: StorageGateway, auditor: Optional[AuditReporter] = None):
        self.gateway = gateway
        self.auditor = auditor or AuditReporter(gateway)

    def select_expired(self, files: List[StoredObject], cutoff: datetime) -> List[StoredObject]:
        """Objects last modified strictly before the cutoff"""
        return [f for f in files if is_older_than(f.last_modified, cutoff)]

    async def cleanup_old_files(
        self,
        bucket: str,
        older_than_days: int = DEFAULT_RETENTION_DAYS,
        dry_run: bool = False
    ) -> CleanupResult:
        """
        Delete objects older than the retention window

        Args:
            bucket: Target bucket name
            older_than_days: Retention window in days
            dry_run: If True, only count what would be deleted

        Returns:
            CleanupResult with deleted count and per-object errors
        """
        start_time = time.monotonic()
        cutoff = _cutoff(older_than_days)
        logger.info(
            f"Starting cleanup: {bucket} "
            f"(older_than={older_than_days}d, cutoff={cutoff.isoformat()}, dry_run={dry_run})",
            extra={'bucket': bucket}
        )

        audit = await self.auditor.audit_bucket(bucket)
        if not audit.success:
            return CleanupResult(
                bucket=bucket,
                success=False,
                errors=[audit.error or "Failed to list files"],
                duration_seconds=time.monotonic() - start_time,
                dry_run=dry_run,
            )

        expired = self.select_expired(audit.files, cutoff)
        deleted = 0
        space_freed = 0
        errors: List[str] = []

        for obj in expired:
            if not dry_run:
                try:
                    if not await self.gateway.delete_file(bucket, obj.key):
                        errors.append(f"Failed to delete {obj.key}")
                        continue
                except Exception as e:
                    error_msg = f"Error deleting {obj.key}: {e}"
                    logger.error(error_msg, extra={'bucket': bucket, 'key': obj.key})
                    errors.append(error_msg)
                    continue

            deleted += 1
            space_freed += obj.size or 0

        if not dry_run:
            record_cleanup(bucket, deleted, len(errors))

        result = CleanupResult(
            bucket=bucket,
            success=True,
            deleted=deleted,
            scanned=audit.count,
            space_freed_bytes=space_freed,
            errors=errors or None,
            duration_seconds=time.monotonic() - start_time,
            dry_run=dry_run,
        )

        logger.info(
            f"Cleanup completed: {bucket} - "
            f"{deleted}/{audit.count} files deleted, "
            f"{result.space_freed_mb:.2f}MB freed, "
            f"{len(errors)} errors",
            extra={'bucket': bucket}
        )

        return result

    async def cleanup_all(
        self,
        older_than_days: int = DEFAULT_RETENTION_DAYS,
        dry_run: bool = False
    ) -> Dict[str, CleanupResult]:
        """Run cleanup over every managed bucket, one bucket at a time"""
        results: Dict[str, CleanupResult] = {}

        for bucket in self.gateway.buckets:
            results[bucket] = await self.cleanup_old_files(bucket, older_than_days, dry_run=dry_run)

        return results

    def get_cleanup_report(self, results: Dict[str, CleanupResult], max_errors: int = 5) -> str:
        """
        Summarize a cleanup pass, one line per bucket

        Example:
            Retention cleanup: 3 deleted across 5 buckets, 1 errors
              gallery-images      ok      deleted=3/40  freed=1.20MB
              profile-images      failed  deleted=0/0   freed=0.00MB
                ! Failed to list objects in 'profile-images': ...
        """
        rows = [r.to_dict() for r in results.values()]
        total_deleted = sum(row['deleted'] for row in rows)
        total_errors = sum(len(row['errors'] or []) for row in rows)
        mode = " (dry run)" if any(row['dry_run'] for row in rows) else ""

        lines = [
            f"Retention cleanup{mode}: {total_deleted} deleted across "
            f"{len(rows)} buckets, {total_errors} errors"
        ]
        for row in rows:
            status = "ok" if row['success'] else "failed"
            lines.append(
                f"  {row['bucket']:<18}  {status:<6}  "
                f"deleted={row['deleted']}/{row['scanned']}  freed={row['space_freed_mb']:.2f}MB"
            )
            lines.extend(f"    ! {error}" for error in (row['errors'] or [])[:max_errors])

        return "\n".join(lines)
