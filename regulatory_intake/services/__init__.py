"""Services — BackendClient, RequirementService, RequirementGroupService, DocumentService, AddressService."""

from regulatory_intake.services.api_client import BackendClient
from regulatory_intake.services.requirement_service import RequirementService
from regulatory_intake.services.group_service import RequirementGroupService
from regulatory_intake.services.document_service import DocumentService
from regulatory_intake.services.address_service import AddressService

__all__ = [
    "BackendClient",
    "RequirementService",
    "RequirementGroupService",
    "DocumentService",
    "AddressService",
]
