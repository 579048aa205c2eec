"""Engine and session factory for the catalog and request tables."""

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from app.config import settings


class Base(DeclarativeBase):
    pass


_engine = None


def get_engine():
    global _engine
    if _engine is None:
        if settings.database_url.startswith("sqlite"):
            _engine = create_engine(settings.database_url, pool_pre_ping=True)
        else:
            _engine = create_engine(
                settings.database_url,
                pool_pre_ping=True,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
                pool_recycle=settings.db_pool_recycle,
            )
    return _engine


SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)


def get_db():
    """Request-scoped session for the provisioning routes.

    Services commit their own transitions; this only guarantees the session
    is closed once the response is sent.

    Example:
        @app.get("/installations")
        def list_installations(db: Session = Depends(get_db)):
            return db.query(Installation).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
