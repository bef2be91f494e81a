"""
Integrity verification of stored references.

Checks that URLs or paths recorded by the application still point at
live objects in the backend.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Dict, Any

from school_storage.metrics import record_integrity_checks
from school_storage.storage.gateway import StorageGateway
from school_storage.storage.paths import parse_file_path

logger = logging.getLogger(__name__)


@dataclass
class BatchVerificationResult:
    """
    Outcome of verifying many stored references
    """
    total: int
    existing: int
    missing: int
    missing_urls: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'existing': self.existing,
            'missing': self.missing,
            'missing_urls': self.missing_urls,
        }


class IntegrityVerifier:
    """
    Verifies stored references against the live backend
    """

    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway

    async def verify_file_exists(self, url: str) -> bool:
        """
        Check whether a stored URL or path still resolves to an object

        References without a bucket segment are reported missing without
        contacting the backend.
        """
        if not url:
            return False

        parsed = parse_file_path(url)
        if not parsed.bucket:
            return False

        return await self.gateway.file_exists(parsed.bucket, parsed.path)

    async def batch_verify_files(self, urls: List[str]) -> BatchVerificationResult:
        """
        Verify many references concurrently

        Every check is issued at once; they are metadata lookups, not
        downloads.

        Returns:
            Counts plus the missing references in input order
        """
        results = await asyncio.gather(*(self.verify_file_exists(url) for url in urls))

        missing_urls = [url for url, exists in zip(urls, results) if not exists]
        existing = len(urls) - len(missing_urls)
        record_integrity_checks(existing, len(missing_urls))

        if missing_urls:
            logger.warning(f"Integrity check: {len(missing_urls)}/{len(urls)} references missing")

        return BatchVerificationResult(
            total=len(urls),
            existing=existing,
            missing=len(missing_urls),
            missing_urls=missing_urls,
        )
