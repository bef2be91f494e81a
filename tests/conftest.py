"""
Pytest configuration and shared fixtures for School Storage tests.
"""
import os
import sys
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

# Add package to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from school_storage.storage.gateway import GatewayConfig, StorageGateway


@pytest.fixture
def gateway_config() -> GatewayConfig:
    """Gateway configuration pointing at a local MinIO."""
    return GatewayConfig(
        endpoint="minio",
        port=9000,
        use_ssl=False,
        access_key="minioadmin",
        secret_key="minioadmin",
    )


@pytest.fixture
def mock_minio(monkeypatch):
    """Mock MinIO client returned by the client factory."""
    mock = MagicMock()
    mock.bucket_exists.return_value = True
    mock.list_objects.return_value = iter([])
    monkeypatch.setattr(
        "school_storage.storage.gateway.get_minio_client",
        lambda config: mock,
    )
    return mock


@pytest.fixture
def gateway(mock_minio, gateway_config) -> StorageGateway:
    """Initialized gateway backed by the mock client."""
    gateway = StorageGateway()
    assert gateway.initialize(gateway_config) is True
    return gateway


@pytest.fixture
def make_object():
    """Factory for listing entries as returned by Minio.list_objects."""
    def _make(name, size=1024, days_old=None, is_dir=False, etag="etag"):
        last_modified = None
        if days_old is not None:
            last_modified = datetime.now(timezone.utc) - timedelta(days=days_old)
        return SimpleNamespace(
            object_name=name,
            size=size,
            last_modified=last_modified,
            etag=etag,
            is_dir=is_dir,
        )
    return _make
