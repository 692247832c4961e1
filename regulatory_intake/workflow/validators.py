"""
Type validators — pure checks of a candidate value against its requirement.

No I/O and no exceptions for rejected input: every check returns a
ValidationResult.  Format and geocoding checks for addresses are left to
the address validation service called by the submitter.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from regulatory_intake.models.enums import RequirementKind
from regulatory_intake.models.schemas import RequirementDefinition
from regulatory_intake.models.values import (
    AddressCandidate,
    CandidateValue,
    DocumentCandidate,
    TextCandidate,
)

MAX_DOCUMENT_BYTES = 5 * 1024 * 1024
ALLOWED_DOCUMENT_TYPES = frozenset({"image/jpeg", "image/png", "application/pdf"})


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    code: str = ""
    reason: str = ""


VALID = ValidationResult(ok=True)


def _fail(code: str, reason: str) -> ValidationResult:
    return ValidationResult(ok=False, code=code, reason=reason)


def validate_document(definition: RequirementDefinition, candidate: DocumentCandidate) -> ValidationResult:
    document = candidate.file
    if document is None:
        # Re-using what the backend already holds is fine unless it was rejected
        if candidate.reference is not None and candidate.reference.reusable:
            return VALID
        return _fail("required", f"Please choose a file for {definition.name or definition.id}")

    if document.size == 0:
        return _fail("required", "The selected file is empty")
    if document.size > MAX_DOCUMENT_BYTES:
        return _fail("too_large", "Document is too large: files must be 5 MB or smaller")
    if document.content_type.lower() not in ALLOWED_DOCUMENT_TYPES:
        return _fail("unsupported_type", f"Unsupported type {document.content_type}: only JPG, PNG and PDF files are allowed")
    return VALID


def validate_text(definition: RequirementDefinition, candidate: TextCandidate) -> ValidationResult:
    value = candidate.text
    if not value.strip():
        return _fail("required", "This field is required")

    criteria = definition.acceptance_criteria
    if criteria.min_length is not None and len(value) < criteria.min_length:
        return _fail("min_length", f"Minimum length is {criteria.min_length} characters")
    if criteria.max_length is not None and len(value) > criteria.max_length:
        return _fail("max_length", f"Maximum length is {criteria.max_length} characters")
    if criteria.acceptable_values and value not in criteria.acceptable_values:
        allowed = ", ".join(criteria.acceptable_values)
        return _fail("not_acceptable", f"Value must be one of: {allowed}")
    return VALID


def validate_address(definition: RequirementDefinition, candidate: AddressCandidate) -> ValidationResult:
    missing = candidate.record.missing_fields()
    if not missing:
        return VALID
    if candidate.reference is not None and candidate.reference.reusable:
        return VALID
    return _fail("address_incomplete", f"Required address fields are missing: {', '.join(missing)}")


VALIDATORS: dict[RequirementKind, Callable[[RequirementDefinition, CandidateValue], ValidationResult]] = {
    RequirementKind.DOCUMENT: validate_document,
    RequirementKind.TEXTUAL: validate_text,
    RequirementKind.ADDRESS: validate_address,
}

if set(VALIDATORS) != set(RequirementKind):
    raise RuntimeError("every requirement kind needs a validator")


def validate(definition: RequirementDefinition, candidate: CandidateValue) -> ValidationResult:
    """Dispatch on the requirement kind."""
    if candidate.kind != definition.kind:
        return _fail("kind_mismatch", f"Expected a {definition.kind.value} value, got {candidate.kind}")
    return VALIDATORS[definition.kind](definition, candidate)
