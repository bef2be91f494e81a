"""
Storage wiring for process startup.

The gateway is built once and handed to every service that needs it;
nothing in the storage layer holds a module-level client.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from school_storage.core.config import Settings, settings as default_settings
from school_storage.core.logging import setup_logging
from school_storage.storage.audit import AuditReporter
from school_storage.storage.gateway import GatewayConfig, StorageGateway
from school_storage.storage.integrity import IntegrityVerifier
from school_storage.storage.retention import RetentionManager

logger = logging.getLogger(__name__)


@dataclass
class StorageServices:
    """
    Storage services sharing one gateway
    """
    gateway: StorageGateway
    audit: AuditReporter
    retention: RetentionManager
    integrity: IntegrityVerifier

    @property
    def available(self) -> bool:
        return self.gateway.is_initialized


def create_storage_services(gateway: Optional[StorageGateway] = None) -> StorageServices:
    """Wire the maintenance services around a gateway"""
    gateway = gateway or StorageGateway()
    audit = AuditReporter(gateway)

    return StorageServices(
        gateway=gateway,
        audit=audit,
        retention=RetentionManager(gateway, auditor=audit),
        integrity=IntegrityVerifier(gateway),
    )


async def init_storage(
    settings: Optional[Settings] = None,
    provision: bool = True,
    configure_logging: bool = False
) -> StorageServices:
    """
    Initialize storage at process start

    A failed initialization does not raise: the returned services report
    ``available == False`` and every gateway operation raises
    ConfigurationError until initialization is retried.

    Args:
        settings: Settings to read the MinIO configuration from
        provision: Create missing buckets after initializing
        configure_logging: Install the package log handler first

    Returns:
        StorageServices sharing a single gateway
    """
    settings = settings or default_settings

    if configure_logging:
        setup_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)

    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}...")

    services = create_storage_services()

    if not services.gateway.initialize(GatewayConfig.from_settings(settings)):
        logger.error("Object storage unavailable: MinIO client could not be initialized")
        return services

    if provision:
        outcomes = await services.gateway.provision_buckets()
        created = [name for name, outcome in outcomes.items() if outcome.created]
        failed = [name for name, outcome in outcomes.items() if not outcome.ok]
        logger.info(
            f"Bucket provisioning complete: {len(created)} created, "
            f"{len(outcomes) - len(created) - len(failed)} existing, {len(failed)} failed"
        )

    logger.info("Object storage ready")
    return services
