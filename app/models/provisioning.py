import enum
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class CommunicationType(enum.Enum):
    VSAT = "VSAT"
    M2M = "M2M"


class InstallationStatus(enum.Enum):
    pending = "pending"
    approved = "approved"
    dismantled = "dismantled"


class RequestStatus(enum.Enum):
    pending = "pending"
    approved = "approved"


def _now() -> datetime:
    return datetime.now(UTC)


class Installation(Base):
    __tablename__ = "installations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location: Mapped[str] = mapped_column(String(160), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    contact: Mapped[str] = mapped_column(String(160), nullable=False)
    area: Mapped[str | None] = mapped_column(String(160))
    province: Mapped[str | None] = mapped_column(String(160), index=True)
    communication: Mapped[CommunicationType] = mapped_column(
        Enum(CommunicationType), default=CommunicationType.VSAT, nullable=False
    )
    provider_id: Mapped[int | None] = mapped_column(ForeignKey("providers.id"), index=True)
    provider: Mapped[str | None] = mapped_column(String(160))
    price_id: Mapped[int | None] = mapped_column(Integer)
    price: Mapped[int | None] = mapped_column(Integer)
    days: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[InstallationStatus] = mapped_column(
        Enum(InstallationStatus), default=InstallationStatus.pending, nullable=False, index=True
    )
    relocation_status: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    dismantle_status: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    batch_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)


class Relocation(Base):
    __tablename__ = "relocations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    installation_id: Mapped[int] = mapped_column(ForeignKey("installations.id"), nullable=False, index=True)
    old_location: Mapped[str] = mapped_column(String(160), nullable=False)
    new_location: Mapped[str] = mapped_column(String(160), nullable=False)
    old_address: Mapped[str] = mapped_column(String(255), nullable=False)
    new_address: Mapped[str] = mapped_column(String(255), nullable=False)
    old_area: Mapped[str | None] = mapped_column(String(160))
    new_area: Mapped[str | None] = mapped_column(String(160))
    old_communication: Mapped[CommunicationType] = mapped_column(Enum(CommunicationType), nullable=False)
    new_communication: Mapped[CommunicationType] = mapped_column(Enum(CommunicationType), nullable=False)
    old_contact: Mapped[str | None] = mapped_column(String(160))
    new_contact: Mapped[str | None] = mapped_column(String(160))
    provider_id: Mapped[int | None] = mapped_column(Integer)
    provider: Mapped[str | None] = mapped_column(String(160))
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, name="relocationstatus"), default=RequestStatus.pending, nullable=False
    )
    batch_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    installation = relationship("Installation")


class Dismantle(Base):
    __tablename__ = "dismantles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    installation_id: Mapped[int] = mapped_column(ForeignKey("installations.id"), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(160), nullable=False)
    provider_id: Mapped[int | None] = mapped_column(Integer)
    provider: Mapped[str | None] = mapped_column(String(160))
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, name="dismantlestatus"), default=RequestStatus.pending, nullable=False
    )
    batch_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    installation = relationship("Installation")
