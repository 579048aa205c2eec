"""Error taxonomy for allocation and request lifecycle services."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException


@dataclass(frozen=True)
class ProvisioningError(Exception):
    code: str
    detail: str
    status_code: int = 400
    retryable: bool = False

    def __str__(self) -> str:
        return f"{self.code}: {self.detail}"

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.detail)


class AllocationError(ProvisioningError):
    """Terminal failure of a single allocation call."""


class NoCoverage(AllocationError):
    def __init__(self, detail: str):
        super().__init__(code="no_coverage", detail=detail, status_code=422, retryable=False)


class NoServiceableProvider(AllocationError):
    def __init__(self, detail: str):
        super().__init__(code="no_serviceable_provider", detail=detail, status_code=422, retryable=False)


class NoPricingAvailable(AllocationError):
    def __init__(self, detail: str):
        super().__init__(code="no_pricing_available", detail=detail, status_code=422, retryable=False)


class ProviderNotFound(AllocationError):
    def __init__(self, detail: str):
        super().__init__(code="provider_not_found", detail=detail, status_code=404, retryable=False)


class RecordNotFound(ProvisioningError):
    def __init__(self, detail: str, code: str = "record_not_found"):
        super().__init__(code=code, detail=detail, status_code=404, retryable=False)


class InstallationNotFound(RecordNotFound):
    def __init__(self, installation_id: int | str):
        super().__init__(detail=f"Installation {installation_id} not found", code="installation_not_found")


class PreconditionFailed(ProvisioningError):
    def __init__(self, detail: str):
        super().__init__(code="precondition_failed", detail=detail, status_code=409, retryable=False)


class StorageError(ProvisioningError):
    def __init__(self, detail: str = "Storage unavailable"):
        super().__init__(code="storage_error", detail=detail, status_code=503, retryable=True)
