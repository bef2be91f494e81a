"""
MinIO Client Module

Provides MinIO client construction from a gateway configuration.
"""
from minio import Minio


def get_minio_client(config) -> Minio:
    """
    Create and return a MinIO client instance.

    Args:
        config: GatewayConfig with endpoint, port, TLS flag and credentials

    Returns:
        Minio: Configured MinIO client
    """
    return Minio(
        f"{config.endpoint}:{config.port}",
        access_key=config.access_key,
        secret_key=config.secret_key,
        secure=config.use_ssl,
        region=config.region,
    )
