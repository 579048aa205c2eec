from app.models.catalog import Coverage, Location, Price, Provider, Sla  # noqa: F401
from app.models.provisioning import (  # noqa: F401
    CommunicationType,
    Dismantle,
    Installation,
    InstallationStatus,
    Relocation,
    RequestStatus,
)
