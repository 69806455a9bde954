"""Payroll record API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from payroll_concepts.api.dependencies import PayrollServiceDep, TenantId
from payroll_concepts.api.schemas import (
    ErrorResponse,
    HistoryEntryResponse,
    PayrollCreate,
    PayrollListResponse,
    PayrollResponse,
    PayrollUpdate,
    StatusChangeRequest,
)
from payroll_concepts.services.state_machine import PayrollStatus

router = APIRouter(prefix="/payrolls", tags=["payrolls"])


@router.post(
    "",
    response_model=PayrollResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_payroll(
    service: PayrollServiceDep,
    tenant_id: TenantId,
    payload: PayrollCreate,
) -> PayrollResponse:
    """Compute and store a pending payroll."""
    record = await service.create(
        tenant_id,
        employee_id=payload.employee_id,
        employee_name=payload.employee_name,
        period=payload.period,
        raw_input=payload.input.model_dump(),
        raw_concepts=(
            [c.model_dump() for c in payload.concepts] if payload.concepts is not None else None
        ),
        template_id=payload.template_id,
        currency=payload.currency,
        notes=payload.notes,
        actor=payload.actor,
    )
    return PayrollResponse.model_validate(record)


@router.get("", response_model=PayrollListResponse)
async def list_payrolls(
    service: PayrollServiceDep,
    tenant_id: TenantId,
    period: Annotated[str | None, Query(pattern=r"^\d{4}-(0[1-9]|1[0-2])$")] = None,
    employee_id: str | None = None,
    status_filter: Annotated[PayrollStatus | None, Query(alias="status")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    skip: Annotated[int, Query(ge=0)] = 0,
) -> PayrollListResponse:
    """List payrolls newest first."""
    page = await service.list_payrolls(
        tenant_id,
        period=period,
        employee_id=employee_id,
        status=status_filter.value if status_filter else None,
        limit=limit,
        skip=skip,
    )
    return PayrollListResponse(
        items=[PayrollResponse.model_validate(r) for r in page.items],
        total=page.total,
        limit=page.limit,
        skip=page.skip,
    )


@router.get(
    "/{payroll_id}",
    response_model=PayrollResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll(
    service: PayrollServiceDep,
    tenant_id: TenantId,
    payroll_id: Annotated[UUID, Path()],
) -> PayrollResponse:
    record = await service.get(tenant_id, payroll_id)
    return PayrollResponse.model_validate(record)


@router.patch(
    "/{payroll_id}",
    response_model=PayrollResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_payroll(
    service: PayrollServiceDep,
    tenant_id: TenantId,
    payroll_id: Annotated[UUID, Path()],
    payload: PayrollUpdate,
) -> PayrollResponse:
    """Update a pending payroll and recompute it."""
    record = await service.update(
        tenant_id,
        payroll_id,
        employee_name=payload.employee_name,
        period=payload.period,
        raw_input=payload.input.model_dump(exclude_none=True) if payload.input else None,
        raw_concepts=(
            [c.model_dump() for c in payload.concepts] if payload.concepts is not None else None
        ),
        notes=payload.notes,
        actor=payload.actor,
    )
    return PayrollResponse.model_validate(record)


@router.post(
    "/{payroll_id}/status",
    response_model=PayrollResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def change_status(
    service: PayrollServiceDep,
    tenant_id: TenantId,
    payroll_id: Annotated[UUID, Path()],
    payload: StatusChangeRequest,
) -> PayrollResponse:
    """Move a payroll through pending → approved → paid, or void it."""
    record = await service.transition(
        tenant_id,
        payroll_id,
        payload.status.value,
        actor=payload.actor,
        notes=payload.notes,
    )
    return PayrollResponse.model_validate(record)


@router.get(
    "/{payroll_id}/history",
    response_model=list[HistoryEntryResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_history(
    service: PayrollServiceDep,
    tenant_id: TenantId,
    payroll_id: Annotated[UUID, Path()],
) -> list[HistoryEntryResponse]:
    entries = await service.history(tenant_id, payroll_id)
    return [HistoryEntryResponse.model_validate(e) for e in entries]


@router.delete(
    "/{payroll_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_payroll(
    service: PayrollServiceDep,
    tenant_id: TenantId,
    payroll_id: Annotated[UUID, Path()],
) -> None:
    await service.delete(tenant_id, payroll_id)
