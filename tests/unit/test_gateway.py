"""
Unit tests for the storage gateway.
Tests StorageGateway from school_storage/storage/gateway.py
"""
import json
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import ANY, MagicMock

import pytest

from school_storage.core.exceptions import BackendError, ConfigurationError, NotFoundError
from school_storage.storage.buckets import MANAGED_BUCKETS
from school_storage.storage.gateway import GatewayConfig, GatewayState, StorageGateway


@pytest.mark.unit
class TestGatewayLifecycle:
    """Test initialization and the uninitialized state."""

    def test_starts_uninitialized(self):
        gateway = StorageGateway()
        assert gateway.state == GatewayState.UNINITIALIZED
        assert gateway.is_initialized is False

    def test_initialize(self, gateway):
        assert gateway.state == GatewayState.INITIALIZED
        assert gateway.is_initialized is True

    def test_initialize_failure_returns_false(self, monkeypatch, gateway_config):
        def broken_factory(config):
            raise ValueError("invalid endpoint")

        monkeypatch.setattr("school_storage.storage.gateway.get_minio_client", broken_factory)
        gateway = StorageGateway()

        assert gateway.initialize(gateway_config) is False
        assert gateway.state == GatewayState.UNINITIALIZED

    def test_failed_reinitialize_returns_to_uninitialized(self, gateway, monkeypatch, gateway_config):
        def broken_factory(config):
            raise ValueError("invalid endpoint")

        monkeypatch.setattr("school_storage.storage.gateway.get_minio_client", broken_factory)

        assert gateway.initialize(gateway_config) is False
        assert gateway.is_initialized is False
        assert gateway.config is None

    def test_reinitialize_replaces_config(self, gateway, gateway_config):
        new_config = gateway_config.model_copy(update={"endpoint": "storage.internal"})
        assert gateway.initialize(new_config) is True
        assert gateway.config.endpoint == "storage.internal"

    @pytest.mark.asyncio
    async def test_operations_require_initialization(self, mock_minio):
        gateway = StorageGateway()

        with pytest.raises(ConfigurationError, match="storage not configured"):
            await gateway.upload_file("gallery-images", "a.png", b"x", "image/png")
        with pytest.raises(ConfigurationError):
            await gateway.delete_file("gallery-images", "a.png")
        with pytest.raises(ConfigurationError):
            await gateway.get_presigned_url("gallery-images", "a.png")
        with pytest.raises(ConfigurationError):
            await gateway.list_files("gallery-images")
        with pytest.raises(ConfigurationError):
            await gateway.ensure_buckets_exist()
        with pytest.raises(ConfigurationError):
            gateway.get_public_url("gallery-images", "a.png")

        mock_minio.bucket_exists.assert_not_called()

    @pytest.mark.asyncio
    async def test_file_exists_false_when_uninitialized(self, mock_minio):
        assert await StorageGateway().file_exists("gallery-images", "a.png") is False
        mock_minio.stat_object.assert_not_called()


@pytest.mark.unit
class TestEnsureBucketsExist:
    """Test bucket provisioning."""

    @pytest.mark.asyncio
    async def test_creates_missing_buckets_with_policy(self, gateway, mock_minio):
        mock_minio.bucket_exists.return_value = False

        assert await gateway.ensure_buckets_exist() is True

        assert mock_minio.make_bucket.call_count == len(MANAGED_BUCKETS)
        mock_minio.make_bucket.assert_any_call("gallery-images", "us-east-1")

        bucket, policy = mock_minio.set_bucket_policy.call_args_list[0].args
        statement = json.loads(policy)["Statement"][0]
        assert statement["Action"] == ["s3:GetObject"]
        assert statement["Principal"] == {"AWS": ["*"]}
        assert statement["Resource"] == [f"arn:aws:s3:::{bucket}/*"]

    @pytest.mark.asyncio
    async def test_existing_buckets_untouched(self, gateway, mock_minio):
        mock_minio.bucket_exists.return_value = True

        outcomes = await gateway.provision_buckets()

        assert all(outcome.existed for outcome in outcomes.values())
        mock_minio.make_bucket.assert_not_called()
        mock_minio.set_bucket_policy.assert_not_called()

    @pytest.mark.asyncio
    async def test_one_bucket_failure_does_not_stop_others(self, gateway, mock_minio):
        mock_minio.bucket_exists.return_value = False

        def make_bucket(name, region):
            if name == "profile-images":
                raise ConnectionError("backend unreachable")

        mock_minio.make_bucket.side_effect = make_bucket

        assert await gateway.ensure_buckets_exist() is True

        policy_buckets = [c.args[0] for c in mock_minio.set_bucket_policy.call_args_list]
        assert policy_buckets == [b for b in MANAGED_BUCKETS if b != "profile-images"]

        outcomes = await gateway.provision_buckets()
        assert outcomes["profile-images"].error == "backend unreachable"
        assert outcomes["gallery-images"].ok


@pytest.mark.unit
class TestUploadFile:
    """Test upload_file."""

    @pytest.mark.asyncio
    async def test_upload(self, gateway, mock_minio):
        mock_minio.put_object.return_value = SimpleNamespace(etag="abc123")

        result = await gateway.upload_file("gallery-images", "2025/01/a.png", b"data", "image/png")

        assert result.url == "http://minio:9000/gallery-images/2025/01/a.png"
        assert result.path == "2025/01/a.png"
        assert result.etag == "abc123"

        args, kwargs = mock_minio.put_object.call_args
        assert args[0] == "gallery-images"
        assert args[1] == "2025/01/a.png"
        assert args[2].read() == b"data"
        assert args[3] == 4
        assert kwargs["content_type"] == "image/png"
        assert "uploaded-at" in kwargs["metadata"]

    @pytest.mark.asyncio
    async def test_missing_bucket(self, gateway, mock_minio):
        mock_minio.bucket_exists.return_value = False

        with pytest.raises(NotFoundError, match="gallery-images") as exc_info:
            await gateway.upload_file("gallery-images", "a.png", b"data", "image/png")

        assert exc_info.value.bucket == "gallery-images"
        mock_minio.put_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_backend_error_is_wrapped(self, gateway, mock_minio):
        mock_minio.put_object.side_effect = ConnectionError("connection reset")

        with pytest.raises(BackendError, match="a.png") as exc_info:
            await gateway.upload_file("gallery-images", "a.png", b"data", "image/png")

        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_public_endpoint_override(self, mock_minio):
        gateway = StorageGateway()
        gateway.initialize(GatewayConfig(
            endpoint="minio",
            port=9000,
            use_ssl=True,
            access_key="k",
            secret_key="s",
            public_endpoint="files.school.test",
            public_port=443,
        ))
        mock_minio.put_object.return_value = SimpleNamespace(etag="e")

        result = await gateway.upload_file("profile-images", "u1/a.png", b"x", "image/png")

        assert result.url == "https://files.school.test:443/profile-images/u1/a.png"


@pytest.mark.unit
class TestBestEffortOperations:
    """Test delete_file and file_exists."""

    @pytest.mark.asyncio
    async def test_delete(self, gateway, mock_minio):
        assert await gateway.delete_file("gallery-images", "a.png") is True
        mock_minio.remove_object.assert_called_once_with("gallery-images", "a.png")

    @pytest.mark.asyncio
    async def test_delete_failure_returns_false(self, gateway, mock_minio):
        mock_minio.remove_object.side_effect = ConnectionError("timeout")
        assert await gateway.delete_file("gallery-images", "a.png") is False

    @pytest.mark.asyncio
    async def test_file_exists(self, gateway, mock_minio):
        assert await gateway.file_exists("gallery-images", "a.png") is True
        mock_minio.stat_object.assert_called_once_with("gallery-images", "a.png")

    @pytest.mark.asyncio
    async def test_file_exists_false_on_error(self, gateway, mock_minio):
        mock_minio.stat_object.side_effect = ConnectionError("not found")
        assert await gateway.file_exists("gallery-images", "a.png") is False


@pytest.mark.unit
class TestPresignedAndStat:
    """Test get_presigned_url and stat_file."""

    @pytest.mark.asyncio
    async def test_presigned_url(self, gateway, mock_minio):
        mock_minio.presigned_get_object.return_value = "http://minio:9000/signed"

        url = await gateway.get_presigned_url("study-resources", "a.pdf", expiry_seconds=600)

        assert url == "http://minio:9000/signed"
        mock_minio.presigned_get_object.assert_called_once_with(
            "study-resources", "a.pdf", expires=timedelta(seconds=600)
        )

    @pytest.mark.asyncio
    async def test_presigned_url_error_propagates(self, gateway, mock_minio):
        mock_minio.presigned_get_object.side_effect = ValueError("bad expiry")

        with pytest.raises(BackendError):
            await gateway.get_presigned_url("study-resources", "a.pdf")

    @pytest.mark.asyncio
    async def test_stat_file(self, gateway, mock_minio, make_object):
        stat = make_object("a.pdf", size=42, days_old=1)
        mock_minio.stat_object.return_value = stat

        obj = await gateway.stat_file("study-resources", "a.pdf")

        assert obj.size == 42
        assert obj.last_modified == stat.last_modified


@pytest.mark.unit
class TestListing:
    """Test iter_objects and list_files."""

    @pytest.mark.asyncio
    async def test_list_files(self, gateway, mock_minio, make_object):
        mock_minio.list_objects.return_value = iter([
            make_object("2025/01/a.png"),
            make_object("2025/01/", is_dir=True),
            make_object("2025/02/b.png"),
        ])

        keys = await gateway.list_files("gallery-images", prefix="2025/")

        assert keys == ["2025/01/a.png", "2025/02/b.png"]
        mock_minio.list_objects.assert_called_once_with("gallery-images", prefix="2025/", recursive=True)

    @pytest.mark.asyncio
    async def test_iter_objects_can_stop_early(self, gateway, mock_minio, make_object):
        mock_minio.list_objects.return_value = iter([make_object(f"{i}.png") for i in range(10)])

        seen = []
        async for obj in gateway.iter_objects("gallery-images"):
            seen.append(obj.key)
            if len(seen) == 2:
                break

        assert seen == ["0.png", "1.png"]

    @pytest.mark.asyncio
    async def test_early_stop_records_list_metric(self, gateway, mock_minio, make_object, monkeypatch):
        record = MagicMock()
        monkeypatch.setattr("school_storage.storage.gateway.record_storage_operation", record)
        mock_minio.list_objects.return_value = iter([make_object(f"{i}.png") for i in range(10)])

        objects = gateway.iter_objects("gallery-images")
        async for _ in objects:
            break
        await objects.aclose()

        record.assert_called_once_with("list", True, ANY)

    @pytest.mark.asyncio
    async def test_failed_listing_records_failure(self, gateway, mock_minio, monkeypatch):
        record = MagicMock()
        monkeypatch.setattr("school_storage.storage.gateway.record_storage_operation", record)
        mock_minio.list_objects.side_effect = ConnectionError("unreachable")

        with pytest.raises(BackendError):
            await gateway.list_files("gallery-images")

        record.assert_called_once_with("list", False, ANY)

    @pytest.mark.asyncio
    async def test_stream_error_propagates(self, gateway, mock_minio, make_object):
        def listing():
            yield make_object("a.png")
            raise ConnectionError("stream broken")

        mock_minio.list_objects.return_value = listing()

        with pytest.raises(BackendError, match="stream broken"):
            await gateway.list_files("gallery-images")
