"""Query builders for database operations.

This module provides composable query builder classes that encapsulate
filter logic, making services cleaner and queries more testable.

Usage:
    from app.queries import InstallationQuery

    results = (
        InstallationQuery(db)
        .by_province("DKI Jakarta")
        .by_status(InstallationStatus.pending)
        .order_by("created_at", "desc")
        .all()
    )
"""

from app.queries.base import BaseQuery
from app.queries.provisioning import DismantleQuery, InstallationQuery, RelocationQuery

__all__ = [
    "BaseQuery",
    "DismantleQuery",
    "InstallationQuery",
    "RelocationQuery",
]
