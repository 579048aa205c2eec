"""Dependency injection container.

This module provides a centralized container for managing service dependencies,
enabling proper testing through dependency mocking and ensuring explicit
dependency graphs.

Usage:
    from app.container import container

    # In route dependencies
    service = container.installation_service(db)

    # In tests
    with container.allocation_engine.override(providers.Factory(lambda db: FakeEngine())):
        service = container.installation_service(db)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dependency_injector import containers, providers  # type: ignore[import-not-found]

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def _catalog_repository_factory(db: "Session"):
    from app.services.provisioning.repository import SqlCatalogRepository
    return SqlCatalogRepository(db)


def _allocation_engine_factory(db: "Session"):
    from app.services.provisioning.allocation import AllocationEngine
    return AllocationEngine.from_settings(container.catalog_repository(db))


def _installation_service_factory(db: "Session"):
    from app.services.provisioning.installations import InstallationService
    return InstallationService(db, container.allocation_engine(db))


def _relocation_service_factory(db: "Session"):
    from app.services.provisioning.relocations import RelocationService
    return RelocationService(db)


def _dismantle_service_factory(db: "Session"):
    from app.services.provisioning.dismantles import DismantleService
    return DismantleService(db)


def _batch_service_factory(db: "Session"):
    from app.services.provisioning.batches import BatchService
    return BatchService(db)


class Container(containers.DeclarativeContainer):
    """Application dependency injection container.

    Provides:
    - Catalog repository and allocation engine bound to a session
    - Lifecycle services with their dependencies

    Everything session-bound is a Factory provider, creating new instances
    per request.
    """

    # -------------------------------------------------------------------------
    # Allocation
    # -------------------------------------------------------------------------

    catalog_repository = providers.Factory(_catalog_repository_factory)
    allocation_engine = providers.Factory(_allocation_engine_factory)

    # -------------------------------------------------------------------------
    # Lifecycle services
    # -------------------------------------------------------------------------

    installation_service = providers.Factory(_installation_service_factory)
    relocation_service = providers.Factory(_relocation_service_factory)
    dismantle_service = providers.Factory(_dismantle_service_factory)
    batch_service = providers.Factory(_batch_service_factory)


# Global container instance
container = Container()
