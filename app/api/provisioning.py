from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import (
    get_batch_service,
    get_dismantle_service,
    get_installation_service,
    get_relocation_service,
)
from app.config import settings
from app.db import get_db
from app.schemas.common import ListResponse
from app.schemas.provisioning import (
    AllocationDecisionRead,
    AllocationPreviewRequest,
    BatchIdRead,
    BatchSummaryRead,
    DismantleCreate,
    DismantleRead,
    InstallationCreate,
    InstallationOverride,
    InstallationRead,
    ProviderLoadRead,
    RelocationCreate,
    RelocationRead,
    RequestCountsRead,
    RequestKind,
    TransitionResultRead,
)
from app.services.provisioning import (
    BatchService,
    DismantleService,
    InstallationService,
    RelocationService,
)
from app.services.provisioning import reports as reports_service

router = APIRouter(prefix="/provisioning", tags=["provisioning"])

_READ_SCHEMAS = {
    RequestKind.installation: InstallationRead,
    RequestKind.relocation: RelocationRead,
    RequestKind.dismantle: DismantleRead,
}


def _transition(result, strict: bool):
    if strict:
        result.raise_for_precondition()
    return result


@router.post("/allocations/preview", response_model=AllocationDecisionRead)
def preview_allocation(
    payload: AllocationPreviewRequest,
    service: InstallationService = Depends(get_installation_service),
):
    return service.preview(payload.location, payload.provider_id, payload.exclude_saturated)


@router.post("/installations", response_model=InstallationRead, status_code=status.HTTP_201_CREATED)
def create_installation(
    payload: InstallationCreate,
    service: InstallationService = Depends(get_installation_service),
):
    return service.create(payload)


@router.get("/installations/{installation_id}", response_model=InstallationRead)
def get_installation(installation_id: int, service: InstallationService = Depends(get_installation_service)):
    return service.get(installation_id)


@router.get("/installations", response_model=ListResponse[InstallationRead])
def list_installations(
    status: str | None = None,
    province: str | None = None,
    provider_id: int | None = None,
    communication: str | None = None,
    batch_id: str | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    service: InstallationService = Depends(get_installation_service),
):
    return service.list_response(
        status,
        province,
        provider_id,
        communication,
        batch_id,
        order_by,
        order_dir,
        limit=limit,
        offset=offset,
    )


@router.post("/installations/{installation_id}/approve", response_model=TransitionResultRead)
def approve_installation(
    installation_id: int,
    strict: bool = False,
    service: InstallationService = Depends(get_installation_service),
):
    return _transition(service.approve(installation_id), strict)


@router.post("/installations/{installation_id}/override", response_model=TransitionResultRead)
def override_installation(
    installation_id: int,
    payload: InstallationOverride,
    strict: bool = False,
    service: InstallationService = Depends(get_installation_service),
):
    return _transition(service.override(installation_id, payload), strict)


@router.post("/relocations", response_model=RelocationRead, status_code=status.HTTP_201_CREATED)
def create_relocation(
    payload: RelocationCreate,
    service: RelocationService = Depends(get_relocation_service),
):
    return service.create(payload)


@router.get("/relocations/{relocation_id}", response_model=RelocationRead)
def get_relocation(relocation_id: int, service: RelocationService = Depends(get_relocation_service)):
    return service.get(relocation_id)


@router.get("/relocations", response_model=ListResponse[RelocationRead])
def list_relocations(
    status: str | None = None,
    installation_id: int | None = None,
    batch_id: str | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    service: RelocationService = Depends(get_relocation_service),
):
    return service.list_response(
        status, installation_id, batch_id, order_by, order_dir, limit=limit, offset=offset
    )


@router.post("/relocations/{relocation_id}/approve", response_model=TransitionResultRead)
def approve_relocation(
    relocation_id: int,
    strict: bool = False,
    service: RelocationService = Depends(get_relocation_service),
):
    return _transition(service.approve(relocation_id), strict)


@router.post("/dismantles", response_model=DismantleRead, status_code=status.HTTP_201_CREATED)
def create_dismantle(
    payload: DismantleCreate,
    service: DismantleService = Depends(get_dismantle_service),
):
    return service.create(payload)


@router.get("/dismantles/{dismantle_id}", response_model=DismantleRead)
def get_dismantle(dismantle_id: int, service: DismantleService = Depends(get_dismantle_service)):
    return service.get(dismantle_id)


@router.get("/dismantles", response_model=ListResponse[DismantleRead])
def list_dismantles(
    status: str | None = None,
    installation_id: int | None = None,
    batch_id: str | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    service: DismantleService = Depends(get_dismantle_service),
):
    return service.list_response(
        status, installation_id, batch_id, order_by, order_dir, limit=limit, offset=offset
    )


@router.post("/dismantles/{dismantle_id}/approve", response_model=TransitionResultRead)
def approve_dismantle(
    dismantle_id: int,
    strict: bool = False,
    service: DismantleService = Depends(get_dismantle_service),
):
    return _transition(service.approve(dismantle_id), strict)


@router.get("/batches/new-id", response_model=BatchIdRead)
def new_batch_id(service: BatchService = Depends(get_batch_service)):
    return {"batch_id": service.new_batch_id()}


@router.get("/batches/{kind}", response_model=list[BatchSummaryRead])
def list_batches(
    kind: RequestKind,
    batch: str | None = Query(default=None, max_length=64),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    service: BatchService = Depends(get_batch_service),
):
    return [
        BatchSummaryRead.model_validate(row, from_attributes=True)
        for row in service.summary(kind, batch, limit=limit, offset=offset)
    ]


@router.get("/batches/{kind}/{batch_id}")
def list_batch_rows(
    kind: RequestKind,
    batch_id: str,
    service: BatchService = Depends(get_batch_service),
):
    schema = _READ_SCHEMAS[kind]
    return [schema.model_validate(row) for row in service.rows(kind, batch_id)]


@router.get("/reports/requests", response_model=RequestCountsRead)
def request_counts(db: Session = Depends(get_db)):
    return reports_service.request_counts(db)


@router.get("/reports/providers", response_model=list[ProviderLoadRead])
def provider_load(province: str | None = None, db: Session = Depends(get_db)):
    return [
        ProviderLoadRead.model_validate(row, from_attributes=True)
        for row in reports_service.provider_load(db, settings.allocation_saturation_threshold, province)
    ]
