from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.provisioning import CommunicationType, InstallationStatus, RequestStatus


class RequestKind(str, Enum):
    installation = "installation"
    relocation = "relocation"
    dismantle = "dismantle"


class AllocationPreviewRequest(BaseModel):
    location: str = Field(min_length=1, max_length=160)
    provider_id: int | None = None
    exclude_saturated: bool = True


class AllocationDecisionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    provider_id: int
    provider_name: str
    price_id: int | None = None
    price: int | None = None
    days: int | None = None
    ruleset: str


class InstallationCreate(BaseModel):
    location: str = Field(min_length=1, max_length=160)
    address: str = Field(min_length=1, max_length=255)
    contact: str = Field(min_length=1, max_length=160)
    area: str | None = Field(default=None, max_length=160)
    communication: CommunicationType = CommunicationType.VSAT
    batch_id: str = Field(min_length=1, max_length=64)

    @field_validator("location", "address", "contact", "batch_id")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class InstallationOverride(BaseModel):
    provider_id: int
    location: str | None = Field(default=None, min_length=1, max_length=160)


class InstallationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    location: str
    address: str
    contact: str
    area: str | None = None
    province: str | None = None
    communication: CommunicationType
    provider_id: int | None = None
    provider: str | None = None
    price_id: int | None = None
    price: int | None = None
    days: int | None = None
    status: InstallationStatus
    relocation_status: bool
    dismantle_status: bool
    batch_id: str
    created_at: datetime
    updated_at: datetime


class RelocationCreate(BaseModel):
    installation_id: int
    new_location: str = Field(min_length=1, max_length=160)
    new_address: str = Field(min_length=1, max_length=255)
    new_area: str | None = Field(default=None, max_length=160)
    new_communication: CommunicationType = CommunicationType.VSAT
    new_contact: str | None = Field(default=None, max_length=160)
    batch_id: str = Field(min_length=1, max_length=64)

    @field_validator("new_location", "new_address", "batch_id")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class RelocationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    installation_id: int
    old_location: str
    new_location: str
    old_address: str
    new_address: str
    old_area: str | None = None
    new_area: str | None = None
    old_communication: CommunicationType
    new_communication: CommunicationType
    old_contact: str | None = None
    new_contact: str | None = None
    provider_id: int | None = None
    provider: str | None = None
    status: RequestStatus
    batch_id: str
    created_at: datetime
    updated_at: datetime


class DismantleCreate(BaseModel):
    installation_id: int
    batch_id: str = Field(min_length=1, max_length=64)

    @field_validator("batch_id")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class DismantleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    installation_id: int
    location: str
    provider_id: int | None = None
    provider: str | None = None
    status: RequestStatus
    batch_id: str
    created_at: datetime
    updated_at: datetime


class TransitionResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: RequestKind
    id: int
    updated: bool
    status: str | None = None
    detail: str | None = None


class BatchIdRead(BaseModel):
    batch_id: str


class BatchSummaryRead(BaseModel):
    batch_id: str
    kind: RequestKind
    record_id: int
    location: str
    status: str
    provider: str | None = None
    total: int
    created_at: datetime


class ProviderLoadRead(BaseModel):
    provider_id: int
    provider: str
    active: int
    saturated: bool


class RequestCountsRead(BaseModel):
    installation: dict[str, int]
    relocation: dict[str, int]
    dismantle: dict[str, int]
