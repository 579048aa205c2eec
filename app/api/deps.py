from fastapi import Depends
from sqlalchemy.orm import Session

from app.db import get_db

# -------------------------------------------------------------------------
# Container-based Dependencies
# -------------------------------------------------------------------------
# These provide services from the DI container for use in route handlers.
# They can be easily mocked in tests by overriding the container providers.


def get_installation_service(db: Session = Depends(get_db)):
    """Get installation service bound to the request session."""
    from app.container import container
    return container.installation_service(db)


def get_relocation_service(db: Session = Depends(get_db)):
    """Get relocation service bound to the request session."""
    from app.container import container
    return container.relocation_service(db)


def get_dismantle_service(db: Session = Depends(get_db)):
    """Get dismantle service bound to the request session."""
    from app.container import container
    return container.dismantle_service(db)


def get_batch_service(db: Session = Depends(get_db)):
    """Get batch service bound to the request session."""
    from app.container import container
    return container.batch_service(db)
