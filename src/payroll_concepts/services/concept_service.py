"""Concept catalog service - the configuration store the engine reads from."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_concepts.calculators.types import Concept
from payroll_concepts.catalog import CatalogValidationError, load_concepts
from payroll_concepts.models import ConceptDefinition, ConceptTemplate
from payroll_concepts.services.errors import DuplicateError, NotFoundError

logger = logging.getLogger(__name__)


def _apply_concept(row: ConceptDefinition, concept: Concept) -> None:
    row.code = concept.id
    row.name = concept.name
    row.concept_type = concept.type.value
    row.mode = concept.mode.value
    row.value = concept.value
    row.base = concept.base.value
    row.custom_base = concept.custom_base
    row.phase = concept.phase.value
    row.min_amount = concept.min_amount
    row.max_amount = concept.max_amount
    row.round_mode = concept.round_mode.value
    row.round_decimals = concept.round_decimals
    row.priority = concept.priority
    row.enabled = concept.enabled


class ConceptService:
    """Service for managing concept templates and their ordered concepts.

    Every write goes through the catalog loader first, so rows in the store
    are always loadable as engine concepts.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # === Templates ===

    async def create_template(
        self,
        tenant_id: UUID,
        name: str,
        description: str | None = None,
        concepts: Sequence[Mapping[str, Any]] = (),
    ) -> ConceptTemplate:
        """Create a template, optionally seeded with concepts in order."""
        validated = load_concepts(concepts)
        self._ensure_unique_codes(validated)
        await self._ensure_template_name_free(tenant_id, name)

        template = ConceptTemplate(tenant_id=tenant_id, name=name, description=description)
        self.session.add(template)
        await self.session.flush()

        for position, concept in enumerate(validated):
            row = ConceptDefinition(template_id=template.template_id, position=position)
            _apply_concept(row, concept)
            self.session.add(row)
        await self.session.flush()

        logger.info(
            "Created concept template %s (%s) with %d concepts",
            template.template_id,
            name,
            len(validated),
        )
        return template

    async def get_template(self, tenant_id: UUID, template_id: UUID) -> ConceptTemplate:
        template = await self.session.get(ConceptTemplate, template_id)
        if template is None or template.tenant_id != tenant_id:
            raise NotFoundError("Concept template", template_id)
        return template

    async def list_templates(self, tenant_id: UUID) -> list[ConceptTemplate]:
        result = await self.session.execute(
            select(ConceptTemplate)
            .where(ConceptTemplate.tenant_id == tenant_id)
            .order_by(ConceptTemplate.name)
        )
        return list(result.scalars().all())

    async def update_template(
        self,
        tenant_id: UUID,
        template_id: UUID,
        name: str | None = None,
        description: str | None = None,
    ) -> ConceptTemplate:
        template = await self.get_template(tenant_id, template_id)
        if name is not None and name != template.name:
            await self._ensure_template_name_free(tenant_id, name)
            template.name = name
        if description is not None:
            template.description = description
        await self.session.flush()
        return template

    async def delete_template(self, tenant_id: UUID, template_id: UUID) -> None:
        template = await self.get_template(tenant_id, template_id)
        for row in await self.list_concepts(tenant_id, template_id):
            await self.session.delete(row)
        await self.session.delete(template)
        await self.session.flush()
        logger.info("Deleted concept template %s", template_id)

    # === Concepts ===

    async def list_concepts(self, tenant_id: UUID, template_id: UUID) -> list[ConceptDefinition]:
        """Concept rows in catalog order."""
        await self.get_template(tenant_id, template_id)
        result = await self.session.execute(
            select(ConceptDefinition)
            .where(ConceptDefinition.template_id == template_id)
            .order_by(ConceptDefinition.position)
        )
        return list(result.scalars().all())

    async def get_concept(self, tenant_id: UUID, template_id: UUID, code: str) -> ConceptDefinition:
        await self.get_template(tenant_id, template_id)
        result = await self.session.execute(
            select(ConceptDefinition).where(
                ConceptDefinition.template_id == template_id,
                ConceptDefinition.code == code,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError("Concept", code)
        return row

    async def add_concept(
        self, tenant_id: UUID, template_id: UUID, data: Mapping[str, Any]
    ) -> ConceptDefinition:
        """Append a concept at the end of the catalog."""
        await self.get_template(tenant_id, template_id)
        (concept,) = load_concepts([data])

        existing = await self.session.execute(
            select(ConceptDefinition.concept_id).where(
                ConceptDefinition.template_id == template_id,
                ConceptDefinition.code == concept.id,
            )
        )
        if existing.first() is not None:
            raise DuplicateError(f"Concept code '{concept.id}' already exists in template")

        max_position = await self.session.scalar(
            select(func.max(ConceptDefinition.position)).where(
                ConceptDefinition.template_id == template_id
            )
        )
        row = ConceptDefinition(
            template_id=template_id,
            position=0 if max_position is None else max_position + 1,
        )
        _apply_concept(row, concept)
        self.session.add(row)
        await self.session.flush()
        return row

    async def update_concept(
        self,
        tenant_id: UUID,
        template_id: UUID,
        code: str,
        changes: Mapping[str, Any],
    ) -> ConceptDefinition:
        """Merge changes into a concept and re-validate the whole definition."""
        row = await self.get_concept(tenant_id, template_id, code)
        merged = {**row.to_concept_dict(), **changes}
        (concept,) = load_concepts([merged])

        if concept.id != code:
            existing = await self.session.execute(
                select(ConceptDefinition.concept_id).where(
                    ConceptDefinition.template_id == template_id,
                    ConceptDefinition.code == concept.id,
                )
            )
            if existing.first() is not None:
                raise DuplicateError(f"Concept code '{concept.id}' already exists in template")

        _apply_concept(row, concept)
        await self.session.flush()
        return row

    async def delete_concept(self, tenant_id: UUID, template_id: UUID, code: str) -> None:
        row = await self.get_concept(tenant_id, template_id, code)
        await self.session.delete(row)
        await self.session.flush()

        for position, remaining in enumerate(await self.list_concepts(tenant_id, template_id)):
            remaining.position = position
        await self.session.flush()

    async def reorder_concepts(
        self, tenant_id: UUID, template_id: UUID, codes: Sequence[str]
    ) -> list[ConceptDefinition]:
        """Set the catalog order. ``codes`` must name every concept exactly once."""
        rows = await self.list_concepts(tenant_id, template_id)
        by_code = {row.code: row for row in rows}
        if sorted(codes) != sorted(by_code):
            raise CatalogValidationError(
                ["order must list every concept code of the template exactly once"]
            )

        for position, code in enumerate(codes):
            by_code[code].position = position
        await self.session.flush()
        return [by_code[code] for code in codes]

    async def load_catalog(self, tenant_id: UUID, template_id: UUID) -> list[Concept]:
        """Snapshot the template as engine concepts, in catalog order."""
        rows = await self.list_concepts(tenant_id, template_id)
        return load_concepts(row.to_concept_dict() for row in rows)

    # === Helpers ===

    async def _ensure_template_name_free(self, tenant_id: UUID, name: str) -> None:
        existing = await self.session.execute(
            select(ConceptTemplate.template_id).where(
                ConceptTemplate.tenant_id == tenant_id,
                ConceptTemplate.name == name,
            )
        )
        if existing.first() is not None:
            raise DuplicateError(f"Concept template '{name}' already exists")

    @staticmethod
    def _ensure_unique_codes(concepts: Sequence[Concept]) -> None:
        seen: set[str] = set()
        for concept in concepts:
            if concept.id in seen:
                raise DuplicateError(f"Concept code '{concept.id}' appears more than once")
            seen.add(concept.id)
