"""API routes."""

from payroll_concepts.api.routes.compute import router as compute_router
from payroll_concepts.api.routes.concepts import router as concepts_router
from payroll_concepts.api.routes.health import router as health_router
from payroll_concepts.api.routes.payrolls import router as payrolls_router

__all__ = ["compute_router", "concepts_router", "health_router", "payrolls_router"]
