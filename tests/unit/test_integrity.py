"""
Unit tests for integrity verification.
Tests IntegrityVerifier from school_storage/storage/integrity.py
"""
import pytest

from school_storage.storage.integrity import IntegrityVerifier


@pytest.fixture
def verifier(gateway) -> IntegrityVerifier:
    return IntegrityVerifier(gateway)


@pytest.mark.unit
class TestVerifyFileExists:
    """Test verify_file_exists."""

    @pytest.mark.asyncio
    async def test_existing_url(self, verifier, mock_minio):
        url = "http://minio:9000/profile-images/user-1/a.png"

        assert await verifier.verify_file_exists(url) is True
        mock_minio.stat_object.assert_called_once_with("profile-images", "user-1/a.png")

    @pytest.mark.asyncio
    async def test_no_bucket_skips_backend(self, verifier, mock_minio):
        assert await verifier.verify_file_exists("a.png") is False
        assert await verifier.verify_file_exists("") is False
        mock_minio.stat_object.assert_not_called()


@pytest.mark.unit
class TestBatchVerifyFiles:
    """Test batch_verify_files."""

    @pytest.mark.asyncio
    async def test_counts_and_missing_order(self, verifier, mock_minio):
        url1 = "http://minio:9000/gallery-images/2025/01/a.png"
        url2 = "http://minio:9000/gallery-images/2025/01/b.png"
        url3 = "http://minio:9000/gallery-images/2025/01/c.png"

        def stat_object(bucket, key):
            if key.endswith("b.png"):
                raise ConnectionError("NoSuchKey")

        mock_minio.stat_object.side_effect = stat_object

        result = await verifier.batch_verify_files([url1, url2, url3])

        assert result.to_dict() == {
            'total': 3,
            'existing': 2,
            'missing': 1,
            'missing_urls': [url2],
        }

    @pytest.mark.asyncio
    async def test_missing_urls_keep_input_order(self, verifier, mock_minio):
        urls = [f"gallery-images/{i}.png" for i in range(6)] + ["orphan.png"]

        def stat_object(bucket, key):
            if int(key.split(".")[0]) % 2:
                raise ConnectionError("NoSuchKey")

        mock_minio.stat_object.side_effect = stat_object

        result = await verifier.batch_verify_files(urls)

        assert result.total == result.existing + result.missing
        assert result.missing_urls == [
            "gallery-images/1.png",
            "gallery-images/3.png",
            "gallery-images/5.png",
            "orphan.png",
        ]

    @pytest.mark.asyncio
    async def test_empty_batch(self, verifier):
        result = await verifier.batch_verify_files([])
        assert (result.total, result.existing, result.missing) == (0, 0, 0)
