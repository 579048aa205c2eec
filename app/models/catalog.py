from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class Location(Base):
    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location: Mapped[str] = mapped_column(String(160), nullable=False, unique=True)
    province: Mapped[str] = mapped_column(String(160), nullable=False)


class Provider(Base):
    __tablename__ = "providers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    provider: Mapped[str] = mapped_column(String(160), nullable=False)


class Coverage(Base):
    __tablename__ = "coverage"
    __table_args__ = (UniqueConstraint("location_id", "provider_id", name="uq_coverage_location_provider"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id"), nullable=False)
    provider_id: Mapped[int] = mapped_column(ForeignKey("providers.id"), nullable=False)
    avail: Mapped[bool] = mapped_column(Boolean, default=True)

    location = relationship("Location")
    provider = relationship("Provider")


class Sla(Base):
    __tablename__ = "slas"
    __table_args__ = (UniqueConstraint("location_id", "provider_id", name="uq_slas_location_provider"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id"), nullable=False)
    provider_id: Mapped[int] = mapped_column(ForeignKey("providers.id"), nullable=False)
    days: Mapped[int] = mapped_column(Integer, nullable=False)

    location = relationship("Location")
    provider = relationship("Provider")


class Price(Base):
    __tablename__ = "prices"
    __table_args__ = (UniqueConstraint("location_id", "provider_id", name="uq_prices_location_provider"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id"), nullable=False)
    provider_id: Mapped[int] = mapped_column(ForeignKey("providers.id"), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)

    location = relationship("Location")
    provider = relationship("Provider")
