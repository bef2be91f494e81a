"""
Storage Audit Service

Reports on the live contents of the managed buckets:
- Full bucket listings with size and modification time
- Per-bucket statistics (count, total size, oldest/newest object)
- JSON manifests for backup planning

Failures are reported in the result instead of raised, so a batch over
many buckets continues past one bad bucket.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from school_storage.metrics import update_bucket_metrics
from school_storage.storage.gateway import StorageGateway, StoredObject

logger = logging.getLogger(__name__)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class AuditResult:
    """
    Listing of a single bucket
    """
    bucket: str
    success: bool
    files: List[StoredObject] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.files)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bucket': self.bucket,
            'success': self.success,
            'count': self.count,
            'files': [
                {
                    'path': f.key,
                    'size': f.size,
                    'last_modified': _isoformat(f.last_modified),
                }
                for f in self.files
            ],
            'error': self.error,
        }


@dataclass
class BucketStats:
    """
    Aggregate statistics for a bucket
    """
    file_count: int = 0
    total_size: int = 0
    oldest_file: Optional[datetime] = None
    newest_file: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def total_size_mb(self) -> float:
        """Get total size in MB"""
        return self.total_size / (1024 ** 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'file_count': self.file_count,
            'total_size': self.total_size,
            'total_size_mb': round(self.total_size_mb, 2),
            'oldest_file': _isoformat(self.oldest_file),
            'newest_file': _isoformat(self.newest_file),
            'error': self.error,
        }


@dataclass
class ManifestResult:
    """
    Serialized bucket manifest, or the reason it could not be built
    """
    success: bool
    manifest: Optional[str] = None
    error: Optional[str] = None


class AuditReporter:
    """
    Audits bucket contents against the live backend
    """

    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway

    async def audit_bucket(self, bucket: str) -> AuditResult:
        """
        List every object in a bucket with its metadata

        Args:
            bucket: Bucket name

        Returns:
            AuditResult; success is False if the listing failed
        """
        files: List[StoredObject] = []

        try:
            async for obj in self.gateway.iter_objects(bucket):
                files.append(obj)
        except Exception as e:
            logger.error(f"Failed to audit bucket {bucket}: {e}", extra={'bucket': bucket})
            return AuditResult(bucket=bucket, success=False, error=str(e))

        logger.debug(f"Audited bucket {bucket}: {len(files)} files", extra={'bucket': bucket})
        return AuditResult(bucket=bucket, success=True, files=files)

    async def get_storage_stats(self) -> Dict[str, BucketStats]:
        """
        Aggregate statistics for every managed bucket

        A bucket whose audit failed is reported with zero counts and the
        error attached, never omitted.
        """
        stats: Dict[str, BucketStats] = {}

        for bucket in self.gateway.buckets:
            audit = await self.audit_bucket(bucket)

            if not audit.success:
                stats[bucket] = BucketStats(error=audit.error)
                continue

            dates = [f.last_modified for f in audit.files if f.last_modified is not None]
            bucket_stats = BucketStats(
                file_count=audit.count,
                total_size=sum(f.size or 0 for f in audit.files),
                oldest_file=min(dates) if dates else None,
                newest_file=max(dates) if dates else None,
            )
            stats[bucket] = bucket_stats
            update_bucket_metrics(bucket, bucket_stats.file_count, bucket_stats.total_size)

        return stats

    async def export_bucket_manifest(self, bucket: str) -> ManifestResult:
        """
        Export a bucket listing as JSON for backup planning

        Manifest format:
            {"bucket", "exportDate", "fileCount",
             "files": [{"path", "size", "lastModified"}]}
        ETags and content types are not included.
        """
        audit = await self.audit_bucket(bucket)

        if not audit.success:
            return ManifestResult(success=False, error=audit.error or "Failed to audit bucket")

        manifest = json.dumps(
            {
                'bucket': bucket,
                'exportDate': datetime.now(timezone.utc).isoformat(),
                'fileCount': audit.count,
                'files': [
                    {
                        'path': f.key,
                        'size': f.size,
                        'lastModified': _isoformat(f.last_modified),
                    }
                    for f in audit.files
                ],
            },
            indent=2,
        )

        return ManifestResult(success=True, manifest=manifest)
