"""
Storage Management Module

This module organizes uploaded content in MinIO:
- Collision-free object keys per content category
- Bucket provisioning with public-read policies
- Uploads, deletes, presigned URLs and listings
- Retention-based cleanup
- Bucket audits, statistics and manifests
- Integrity verification of stored references
"""

from .buckets import Bucket, MANAGED_BUCKETS, DATE_ORGANIZED_BUCKETS, public_read_policy
from .naming import sanitize_name, generate_unique_filename
from .paths import (
    PathContext,
    ParsedPath,
    generate_homepage_path,
    generate_gallery_path,
    generate_profile_path,
    generate_study_resource_path,
    generate_general_path,
    generate_path,
    parse_file_path,
    extract_filename_from_path,
    get_date_prefix_from_path,
    group_paths_by_month,
)
from .file_types import FileInfo, get_file_info, validate_file_size
from .gateway import (
    StorageGateway,
    GatewayConfig,
    GatewayState,
    StoredObject,
    UploadResult,
    ProvisionOutcome,
)
from .retention import (
    RetentionManager,
    CleanupResult,
    CleanupPaths,
    generate_cleanup_paths,
    get_cleanup_date_threshold,
)
from .audit import AuditReporter, AuditResult, BucketStats, ManifestResult
from .integrity import IntegrityVerifier, BatchVerificationResult

__all__ = [
    # Buckets
    'Bucket',
    'MANAGED_BUCKETS',
    'DATE_ORGANIZED_BUCKETS',
    'public_read_policy',

    # Naming and paths
    'sanitize_name',
    'generate_unique_filename',
    'PathContext',
    'ParsedPath',
    'generate_homepage_path',
    'generate_gallery_path',
    'generate_profile_path',
    'generate_study_resource_path',
    'generate_general_path',
    'generate_path',
    'parse_file_path',
    'extract_filename_from_path',
    'get_date_prefix_from_path',
    'group_paths_by_month',

    # File types
    'FileInfo',
    'get_file_info',
    'validate_file_size',

    # Gateway
    'StorageGateway',
    'GatewayConfig',
    'GatewayState',
    'StoredObject',
    'UploadResult',
    'ProvisionOutcome',

    # Retention
    'RetentionManager',
    'CleanupResult',
    'CleanupPaths',
    'generate_cleanup_paths',
    'get_cleanup_date_threshold',

    # Audit
    'AuditReporter',
    'AuditResult',
    'BucketStats',
    'ManifestResult',

    # Integrity
    'IntegrityVerifier',
    'BatchVerificationResult',
]
