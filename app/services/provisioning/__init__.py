"""Provider allocation and installation request lifecycle."""

from app.services.provisioning.allocation import ALLOCATION_RULESET, AllocationDecision, AllocationEngine
from app.services.provisioning.batches import BatchService, BatchSummary
from app.services.provisioning.dismantles import DismantleService
from app.services.provisioning.installations import InstallationService
from app.services.provisioning.relocations import RelocationService
from app.services.provisioning.repository import SqlCatalogRepository

__all__ = [
    "ALLOCATION_RULESET",
    "AllocationDecision",
    "AllocationEngine",
    "BatchService",
    "BatchSummary",
    "DismantleService",
    "InstallationService",
    "RelocationService",
    "SqlCatalogRepository",
]
