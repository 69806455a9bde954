"""Concept template API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from payroll_concepts.api.dependencies import ConceptServiceDep, TenantId
from payroll_concepts.api.schemas import (
    ConceptUpdate,
    ErrorResponse,
    ReorderRequest,
    TemplateCreate,
    TemplateDetailResponse,
    TemplateResponse,
    TemplateUpdate,
)
from payroll_concepts.catalog import ConceptSpec
from payroll_concepts.models import ConceptDefinition, ConceptTemplate

router = APIRouter(prefix="/concept-templates", tags=["concepts"])


def _concept_response(row: ConceptDefinition) -> ConceptSpec:
    return ConceptSpec.model_validate(row.to_concept_dict())


def _detail(template: ConceptTemplate, rows: list[ConceptDefinition]) -> TemplateDetailResponse:
    return TemplateDetailResponse(
        **TemplateResponse.model_validate(template).model_dump(),
        concepts=[_concept_response(row) for row in rows],
    )


# ============================================================================
# Templates
# ============================================================================


@router.post(
    "",
    response_model=TemplateDetailResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_template(
    service: ConceptServiceDep,
    tenant_id: TenantId,
    payload: TemplateCreate,
) -> TemplateDetailResponse:
    """Create a concept template, optionally with its initial concepts."""
    template = await service.create_template(
        tenant_id,
        payload.name,
        description=payload.description,
        concepts=[c.model_dump() for c in payload.concepts],
    )
    rows = await service.list_concepts(tenant_id, template.template_id)
    return _detail(template, rows)


@router.get("", response_model=list[TemplateResponse])
async def list_templates(service: ConceptServiceDep, tenant_id: TenantId) -> list[TemplateResponse]:
    """List the tenant's concept templates."""
    templates = await service.list_templates(tenant_id)
    return [TemplateResponse.model_validate(t) for t in templates]


@router.get(
    "/{template_id}",
    response_model=TemplateDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_template(
    service: ConceptServiceDep,
    tenant_id: TenantId,
    template_id: Annotated[UUID, Path()],
) -> TemplateDetailResponse:
    template = await service.get_template(tenant_id, template_id)
    rows = await service.list_concepts(tenant_id, template_id)
    return _detail(template, rows)


@router.patch(
    "/{template_id}",
    response_model=TemplateResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_template(
    service: ConceptServiceDep,
    tenant_id: TenantId,
    template_id: Annotated[UUID, Path()],
    payload: TemplateUpdate,
) -> TemplateResponse:
    template = await service.update_template(
        tenant_id, template_id, name=payload.name, description=payload.description
    )
    return TemplateResponse.model_validate(template)


@router.delete(
    "/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_template(
    service: ConceptServiceDep,
    tenant_id: TenantId,
    template_id: Annotated[UUID, Path()],
) -> None:
    await service.delete_template(tenant_id, template_id)


# ============================================================================
# Concepts
# ============================================================================


@router.get(
    "/{template_id}/concepts",
    response_model=list[ConceptSpec],
    responses={404: {"model": ErrorResponse}},
)
async def list_concepts(
    service: ConceptServiceDep,
    tenant_id: TenantId,
    template_id: Annotated[UUID, Path()],
) -> list[ConceptSpec]:
    """List concepts in catalog order."""
    rows = await service.list_concepts(tenant_id, template_id)
    return [_concept_response(row) for row in rows]


@router.post(
    "/{template_id}/concepts",
    response_model=ConceptSpec,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def add_concept(
    service: ConceptServiceDep,
    tenant_id: TenantId,
    template_id: Annotated[UUID, Path()],
    payload: ConceptSpec,
) -> ConceptSpec:
    """Append a concept to the end of the catalog."""
    row = await service.add_concept(tenant_id, template_id, payload.model_dump())
    return _concept_response(row)


@router.patch(
    "/{template_id}/concepts/{code}",
    response_model=ConceptSpec,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_concept(
    service: ConceptServiceDep,
    tenant_id: TenantId,
    template_id: Annotated[UUID, Path()],
    code: Annotated[str, Path()],
    payload: ConceptUpdate,
) -> ConceptSpec:
    row = await service.update_concept(
        tenant_id, template_id, code, payload.model_dump(exclude_unset=True)
    )
    return _concept_response(row)


@router.delete(
    "/{template_id}/concepts/{code}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_concept(
    service: ConceptServiceDep,
    tenant_id: TenantId,
    template_id: Annotated[UUID, Path()],
    code: Annotated[str, Path()],
) -> None:
    await service.delete_concept(tenant_id, template_id, code)


@router.put(
    "/{template_id}/concepts/order",
    response_model=list[ConceptSpec],
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def reorder_concepts(
    service: ConceptServiceDep,
    tenant_id: TenantId,
    template_id: Annotated[UUID, Path()],
    payload: ReorderRequest,
) -> list[ConceptSpec]:
    """Replace the catalog order; earnings are applied in this order."""
    rows = await service.reorder_concepts(tenant_id, template_id, payload.codes)
    return [_concept_response(row) for row in rows]
