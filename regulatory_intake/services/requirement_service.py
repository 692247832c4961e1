"""
Requirement Service — read-only access to the jurisdiction requirement catalog.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from regulatory_intake.errors import BackendError
from regulatory_intake.models.schemas import RequirementDefinition
from regulatory_intake.services.api_client import BackendClient

logger = logging.getLogger(__name__)


class RequirementService:
    """Fetches the ordered requirement definitions for a jurisdiction."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def get_jurisdiction_requirements(self, jurisdiction: str) -> list[RequirementDefinition]:
        """
        Return the catalog for ``jurisdiction`` in backend order.
        A jurisdiction the catalog does not know has no requirements.
        """
        path = f"/requirements/countries/{quote(jurisdiction)}/requirements"
        try:
            payload = await self.client.get(path)
        except BackendError as exc:
            if exc.is_not_found:
                logger.info(f"No requirement catalog for {jurisdiction}")
                return []
            raise

        if isinstance(payload, dict):
            if not payload.get("hasRequirements", True):
                return []
            items = payload.get("requirements") or []
        else:
            items = payload or []

        definitions = [RequirementDefinition.model_validate(item) for item in items]
        logger.info(f"Loaded {len(definitions)} requirement(s) for {jurisdiction}")
        return definitions
