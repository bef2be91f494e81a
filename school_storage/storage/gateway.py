"""
Storage Gateway

Owns the connection to the MinIO backend and exposes the operations the
rest of the application uses:
- Bucket provisioning with public-read policies
- Uploads returning a public URL
- Best-effort deletes and existence checks
- Presigned download URLs
- Lazy object listing

The gateway starts UNINITIALIZED. ``initialize()`` never raises so the
hosting process can boot and report storage as unavailable; every other
operation raises ConfigurationError until initialization succeeds. The
MinIO client is synchronous, so backend calls run in worker threads.
"""
import asyncio
import io
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from minio import Minio
from pydantic import BaseModel

from school_storage.core.exceptions import BackendError, ConfigurationError, NotFoundError
from school_storage.core.minio_client import get_minio_client
from school_storage.metrics import record_storage_operation, record_upload_bytes
from school_storage.storage.buckets import MANAGED_BUCKETS, public_read_policy_json

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "storage not configured"

_END = object()


class GatewayState(str, Enum):
    """Gateway lifecycle state"""
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


class GatewayConfig(BaseModel):
    """Connection settings captured at initialization"""
    endpoint: str
    port: int = 9000
    use_ssl: bool = False
    access_key: str
    secret_key: str
    region: str = "us-east-1"
    public_endpoint: Optional[str] = None
    public_port: Optional[int] = None

    @classmethod
    def from_settings(cls, settings) -> "GatewayConfig":
        return cls(
            endpoint=settings.MINIO_ENDPOINT,
            port=settings.MINIO_PORT,
            use_ssl=settings.MINIO_USE_SSL,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            region=settings.MINIO_REGION,
            public_endpoint=settings.MINIO_PUBLIC_ENDPOINT,
            public_port=settings.MINIO_PUBLIC_PORT,
        )


@dataclass
class StoredObject:
    """
    Backend-reported object metadata
    """
    bucket: str
    key: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None


@dataclass
class UploadResult:
    """
    Result of an upload; the caller persists it if it needs the file later
    """
    url: str
    path: str
    etag: str

    def to_dict(self) -> Dict[str, Any]:
        return {'url': self.url, 'path': self.path, 'etag': self.etag}


@dataclass
class ProvisionOutcome:
    """
    Outcome of provisioning a single bucket
    """
    bucket: str
    existed: bool = False
    created: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StorageGateway:
    """
    Gateway to the MinIO backend

    Features:
    - Explicit UNINITIALIZED/INITIALIZED lifecycle
    - Idempotent bucket provisioning with partial-failure tolerance
    - Public URL rendering with optional public endpoint overrides
    - Operation metrics for every backend call
    """

    def __init__(self, buckets: Optional[List[str]] = None):
        """
        Initialize an unconfigured gateway

        Args:
            buckets: Buckets to provision (default: all managed buckets)
        """
        self.buckets = list(buckets or MANAGED_BUCKETS)
        self._client: Optional[Minio] = None
        self._config: Optional[GatewayConfig] = None
        self._state = GatewayState.UNINITIALIZED

    @property
    def state(self) -> GatewayState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return self._state == GatewayState.INITIALIZED and self._client is not None

    @property
    def config(self) -> Optional[GatewayConfig]:
        return self._config

    @property
    def client(self) -> Minio:
        """Underlying MinIO client; raises ConfigurationError before init"""
        if not self.is_initialized:
            raise ConfigurationError(NOT_CONFIGURED)
        return self._client

    def initialize(self, config: GatewayConfig) -> bool:
        """
        Build the MinIO client and move to INITIALIZED

        Replaces any previous config and client wholesale.

        Returns:
            True on success, False if the client could not be built
        """
        try:
            client = get_minio_client(config)
        except Exception as e:
            logger.error(f"Failed to initialize MinIO client: {e}")
            self._client = None
            self._config = None
            self._state = GatewayState.UNINITIALIZED
            return False

        self._client = client
        self._config = config
        self._state = GatewayState.INITIALIZED

        logger.info(
            f"MinIO storage client initialized "
            f"(endpoint={config.endpoint}:{config.port}, ssl={config.use_ssl})"
        )
        return True

    async def _call(self, operation: str, func: Callable, *args, **kwargs):
        """Run a blocking client call in a thread and record its metrics"""
        start_time = time.monotonic()
        success = False
        try:
            result = await asyncio.to_thread(func, *args, **kwargs)
            success = True
            return result
        finally:
            record_storage_operation(operation, success, time.monotonic() - start_time)

    async def provision_buckets(self) -> Dict[str, ProvisionOutcome]:
        """
        Create missing buckets and attach the public-read policy

        Buckets are handled one at a time; a failure is recorded and the
        next bucket is still provisioned.

        Returns:
            Outcome per bucket name
        """
        client = self.client
        outcomes: Dict[str, ProvisionOutcome] = {}

        for bucket_name in self.buckets:
            outcome = ProvisionOutcome(bucket=bucket_name)
            try:
                if await self._call("bucket_exists", client.bucket_exists, bucket_name):
                    outcome.existed = True
                else:
                    await self._call("make_bucket", client.make_bucket, bucket_name, self._config.region)
                    await self._call(
                        "set_policy",
                        client.set_bucket_policy,
                        bucket_name,
                        public_read_policy_json(bucket_name)
                    )
                    outcome.created = True
                    logger.info(f"Created and configured bucket: {bucket_name}", extra={'bucket': bucket_name})
            except Exception as e:
                outcome.error = str(e)
                logger.error(f"Error ensuring bucket {bucket_name} exists: {e}", extra={'bucket': bucket_name})

            outcomes[bucket_name] = outcome

        failed = [name for name, outcome in outcomes.items() if not outcome.ok]
        if failed:
            logger.warning(f"Bucket provisioning incomplete, failed: {', '.join(failed)}")

        return outcomes

    async def ensure_buckets_exist(self) -> bool:
        """
        Make sure every managed bucket exists with a public-read policy

        Provisioning is best-effort: individual bucket failures are logged
        and do not stop the others.

        Returns:
            True once the provisioning pass has completed
        """
        await self.provision_buckets()
        return True

    def get_public_url(self, bucket: str, key: str) -> str:
        """
        Render the public URL of an object

        Format: {http|https}://{public host}:{public port}/{bucket}/{key}
        """
        if self._config is None:
            raise ConfigurationError(NOT_CONFIGURED)

        config = self._config
        protocol = "https" if config.use_ssl else "http"
        host = config.public_endpoint or config.endpoint
        port = config.public_port or config.port

        return f"{protocol}://{host}:{port}/{bucket}/{key}"

    async def upload_file(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str
    ) -> UploadResult:
        """
        Upload bytes to a bucket

        Args:
            bucket: Target bucket name
            key: Object key (usually from a path scheme)
            data: Object content
            content_type: MIME type stored with the object

        Returns:
            UploadResult with public URL, key and ETag

        Raises:
            ConfigurationError: Gateway not initialized
            NotFoundError: Bucket does not exist
            BackendError: The backend rejected the request
        """
        client = self.client

        try:
            exists = await self._call("bucket_exists", client.bucket_exists, bucket)
        except Exception as e:
            logger.error(f"Failed to upload file to MinIO: {key}: {e}", extra={'bucket': bucket, 'key': key})
            raise BackendError(f"File upload failed for '{key}': {e}") from e

        if not exists:
            raise NotFoundError(bucket)

        try:
            result = await self._call(
                "upload",
                client.put_object,
                bucket,
                key,
                io.BytesIO(data),
                len(data),
                content_type=content_type,
                metadata={"uploaded-at": datetime.now(timezone.utc).isoformat()},
            )
        except Exception as e:
            logger.error(f"Failed to upload file to MinIO: {key}: {e}", extra={'bucket': bucket, 'key': key})
            raise BackendError(f"File upload failed for '{key}': {e}") from e

        record_upload_bytes(bucket, len(data))
        logger.debug(f"Uploaded {key} ({len(data)} bytes)", extra={'bucket': bucket, 'key': key})

        return UploadResult(
            url=self.get_public_url(bucket, key),
            path=key,
            etag=result.etag,
        )

    async def delete_file(self, bucket: str, key: str) -> bool:
        """
        Delete an object

        Returns:
            True if deleted, False if the backend reported an error
        """
        client = self.client

        try:
            await self._call("delete", client.remove_object, bucket, key)
            return True
        except Exception as e:
            logger.error(f"Failed to delete file from MinIO: {key}: {e}", extra={'bucket': bucket, 'key': key})
            return False

    async def get_presigned_url(self, bucket: str, key: str, expiry_seconds: int = 3600) -> str:
        """
        Generate a time-limited download URL

        Raises:
            BackendError: URL could not be generated
        """
        client = self.client

        try:
            return await self._call(
                "presign",
                client.presigned_get_object,
                bucket,
                key,
                expires=timedelta(seconds=expiry_seconds),
            )
        except Exception as e:
            raise BackendError(f"Failed to generate presigned URL for '{key}': {e}") from e

    async def stat_file(self, bucket: str, key: str) -> StoredObject:
        """
        Fetch object metadata

        Raises:
            BackendError: Object missing or backend unreachable
        """
        client = self.client

        try:
            stat = await self._call("stat", client.stat_object, bucket, key)
        except Exception as e:
            raise BackendError(f"Failed to stat '{key}' in '{bucket}': {e}") from e

        return StoredObject(
            bucket=bucket,
            key=key,
            size=stat.size,
            last_modified=stat.last_modified,
            etag=stat.etag,
        )

    async def file_exists(self, bucket: str, key: str) -> bool:
        """Check object metadata; any failure counts as missing"""
        if not self.is_initialized:
            return False

        try:
            await self._call("stat", self._client.stat_object, bucket, key)
            return True
        except Exception:
            return False

    async def iter_objects(self, bucket: str, prefix: Optional[str] = None) -> AsyncIterator[StoredObject]:
        """
        Lazily list every object in a bucket

        The listing is recursive and finite. It cannot be resumed; calling
        again lists from the beginning.

        Raises:
            BackendError: Listing failed part way
        """
        client = self.client
        start_time = time.monotonic()
        failed = False

        try:
            objects = iter(client.list_objects(bucket, prefix=prefix, recursive=True))
            while True:
                obj = await asyncio.to_thread(next, objects, _END)
                if obj is _END:
                    break
                if obj.is_dir:
                    continue
                yield StoredObject(
                    bucket=bucket,
                    key=obj.object_name,
                    size=obj.size,
                    last_modified=obj.last_modified,
                    etag=obj.etag,
                )
        except Exception as e:
            failed = True
            raise BackendError(f"Failed to list objects in '{bucket}': {e}") from e
        finally:
            # Also runs when the consumer stops early and the generator is closed
            record_storage_operation("list", not failed, time.monotonic() - start_time)

    async def list_files(self, bucket: str, prefix: Optional[str] = None) -> List[str]:
        """
        List all object keys in a bucket

        Args:
            bucket: Bucket name
            prefix: Optional key prefix filter

        Returns:
            Object keys in listing order
        """
        return [obj.key async for obj in self.iter_objects(bucket, prefix)]
