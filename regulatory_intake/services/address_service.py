"""
Address Service — sends structured addresses to the validation service,
which normalizes, stores, and assigns an id to acceptable ones.
"""

from __future__ import annotations

import logging

from regulatory_intake.models.schemas import AddressValidationResult
from regulatory_intake.models.values import AddressRecord
from regulatory_intake.services.api_client import BackendClient

logger = logging.getLogger(__name__)


class AddressService:
    def __init__(self, client: BackendClient):
        self.client = client

    async def validate_address(self, record: AddressRecord) -> AddressValidationResult:
        payload = await self.client.post("/validation/address", json=record.to_wire())
        result = AddressValidationResult.model_validate(payload or {})
        logger.info(f"Address validation → status={result.status.value} id={result.id!r}")
        return result
