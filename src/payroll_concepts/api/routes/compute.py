"""Stateless payroll computation endpoints."""

from fastapi import APIRouter, status

from payroll_concepts.api.schemas import (
    ComputeBatchRequest,
    ComputeRequest,
    ComputeResponse,
    ErrorResponse,
    PayrollCalcResponse,
)
from payroll_concepts.catalog import load_concepts, load_payroll_input
from payroll_concepts.services.payroll_service import (
    PayrollPreview,
    preview_batch,
    preview_payroll,
)

router = APIRouter(prefix="/payroll", tags=["compute"])


def _load(payload: ComputeRequest):
    payroll_input = load_payroll_input(payload.input.model_dump())
    concepts = load_concepts(c.model_dump() for c in payload.concepts)
    return payroll_input, concepts


def _response(preview: PayrollPreview) -> ComputeResponse:
    return ComputeResponse(
        calculation_id=preview.calculation_id,
        result=PayrollCalcResponse.model_validate(preview.calc),
        warnings=preview.warnings,
    )


@router.post(
    "/compute",
    response_model=ComputeResponse,
    status_code=status.HTTP_200_OK,
    responses={422: {"model": ErrorResponse}},
)
async def compute(payload: ComputeRequest) -> ComputeResponse:
    """Apply a concept catalog to a payroll input without storing anything."""
    payroll_input, concepts = _load(payload)
    return _response(preview_payroll(payroll_input, concepts))


@router.post(
    "/compute/batch",
    response_model=list[ComputeResponse],
    status_code=status.HTTP_200_OK,
    responses={422: {"model": ErrorResponse}},
)
def compute_batch(payload: ComputeBatchRequest) -> list[ComputeResponse]:
    """Compute many payrolls at once; results keep the request order.

    Declared sync so FastAPI runs it in its threadpool, off the event loop.
    """
    requests = [_load(item) for item in payload.items]
    return [_response(preview) for preview in preview_batch(requests)]
