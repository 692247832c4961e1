"""
Wire schemas exchanged with the marketplace backend.
Each schema mirrors one request or response body; input aliases accept
both the backend's spelling and the camelCase spelling.
"""

from __future__ import annotations

import json
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field, field_validator

from .enums import (
    AddressValidationStatus,
    GroupStatus,
    RequirementKind,
    SubmissionStatus,
)


def _coerce_submission_status(value: Any) -> Any:
    # Older records report an accepted field as "completed"
    if isinstance(value, str):
        lowered = value.lower()
        if lowered == "completed":
            return SubmissionStatus.APPROVED
        if lowered not in {s.value for s in SubmissionStatus}:
            return SubmissionStatus.PENDING
        return lowered
    return value


# ── Requirement catalog ──────────────────────────────────


class AcceptanceCriteria(BaseModel):
    """Constraint bag; only the entries relevant to a kind are interpreted."""
    min_length: Optional[int] = Field(default=None, validation_alias=AliasChoices("min_length", "minLength"))
    max_length: Optional[int] = Field(default=None, validation_alias=AliasChoices("max_length", "maxLength"))
    time_limit: Optional[str] = Field(default=None, validation_alias=AliasChoices("time_limit", "timeLimit"))
    locality_limit: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("locality_limit", "localityLimit")
    )
    acceptable_values: Optional[list[str]] = Field(
        default=None, validation_alias=AliasChoices("acceptable_values", "acceptableValues")
    )


class RequirementDefinition(BaseModel):
    """A single catalog entry for a jurisdiction."""
    id: str
    name: str = ""
    kind: RequirementKind = Field(validation_alias=AliasChoices("kind", "type"))
    description: str = ""
    example: str = ""
    acceptance_criteria: AcceptanceCriteria = Field(
        default_factory=AcceptanceCriteria,
        validation_alias=AliasChoices("acceptance_criteria", "acceptanceCriteria"),
    )

    @field_validator("acceptance_criteria", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("name", "description", "example", mode="before")
    @classmethod
    def _none_is_blank(cls, value: Any) -> Any:
        return "" if value is None else value


# ── Requirement group ────────────────────────────────────


class RequirementSubmission(BaseModel):
    """Backend record of the value submitted for one requirement."""
    field: str
    type: Optional[str] = None
    status: SubmissionStatus = SubmissionStatus.PENDING
    value: Optional[str] = None
    document_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("document_url", "documentUrl"))
    submitted_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("submitted_at", "submittedAt"))
    rejection_reason: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("rejection_reason", "rejectionReason")
    )

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        return _coerce_submission_status(value)

    @field_validator("value", mode="before")
    @classmethod
    def _structured_value_as_text(cls, value: Any) -> Any:
        # The backend stores a string; some deployments echo the parsed object back
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value


class RequirementGroup(BaseModel):
    """The backend's durable record for one (organization, jurisdiction) pair."""
    id: str
    status: GroupStatus = GroupStatus.PENDING
    requirements: list[RequirementSubmission] = []
    valid_until: Optional[str] = Field(default=None, validation_alias=AliasChoices("valid_until", "validUntil"))

    def submission_for(self, requirement_id: str) -> Optional[RequirementSubmission]:
        for submission in self.requirements:
            if submission.field == requirement_id:
                return submission
        return None


class GroupResolution(BaseModel):
    group: RequirementGroup
    is_new: bool = Field(default=False, validation_alias=AliasChoices("is_new", "isNew"))


class RequirementUpdate(BaseModel):
    """One field-scoped entry of a group update call."""
    requirement_id: str = Field(serialization_alias="requirementId")
    value: str


class RequirementStatusEntry(BaseModel):
    field: str
    status: SubmissionStatus = SubmissionStatus.PENDING
    rejection_reason: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("rejection_reason", "rejectionReason")
    )

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        return _coerce_submission_status(value)


class GroupStatusReport(BaseModel):
    id: Optional[str] = None
    status: GroupStatus = GroupStatus.PENDING
    requirements: list[RequirementStatusEntry] = []
    is_complete: bool = Field(default=False, validation_alias=AliasChoices("is_complete", "isComplete"))
    valid_until: Optional[str] = Field(default=None, validation_alias=AliasChoices("valid_until", "validUntil"))


class MissingRequirement(BaseModel):
    field: str
    type: Optional[str] = None


class GroupValidationReport(BaseModel):
    """Result of asking the backend to validate the complete group."""
    is_valid: bool = Field(default=False, validation_alias=AliasChoices("is_valid", "isValid"))
    missing_requirements: list[MissingRequirement] = Field(
        default_factory=list,
        validation_alias=AliasChoices("missing_requirements", "missingRequirements"),
    )
    group_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("group_id", "groupId"))
    provider_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("provider_id", "providerId", "telnyxId")
    )


# ── Document store ───────────────────────────────────────

_SIZE_UNITS = {"b": 1, "bytes": 1, "kb": 1024, "kib": 1024, "mb": 1024 ** 2, "mib": 1024 ** 2}


class DocumentUploadResult(BaseModel):
    id: str = ""
    filename: str = ""
    size: int = 0  # bytes
    checksum: str = Field(default="", validation_alias=AliasChoices("checksum", "sha256"))
    status: str = ""
    content_type: str = Field(default="", validation_alias=AliasChoices("content_type", "contentType"))
    customer_reference: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("customer_reference", "customerReference")
    )
    created_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt"))

    @field_validator("size", mode="before")
    @classmethod
    def _size_in_bytes(cls, value: Any) -> Any:
        # The store may report {"unit": "bytes", "amount": 123}
        if isinstance(value, dict):
            unit = str(value.get("unit", "bytes")).lower()
            return int(float(value.get("amount", 0)) * _SIZE_UNITS.get(unit, 1))
        return value or 0

    @field_validator("id", mode="before")
    @classmethod
    def _missing_id_is_blank(cls, value: Any) -> Any:
        return "" if value is None else value


# ── Address validation ───────────────────────────────────


class AddressValidationResult(BaseModel):
    id: Optional[str] = None
    status: AddressValidationStatus = AddressValidationStatus.INVALID
    errors: list[str] = []

    @field_validator("status", mode="before")
    @classmethod
    def _unknown_status_is_invalid(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() == AddressValidationStatus.VALID.value:
            return AddressValidationStatus.VALID
        return AddressValidationStatus.INVALID

    @field_validator("errors", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def accepted(self) -> bool:
        return self.status == AddressValidationStatus.VALID and bool(self.id)
