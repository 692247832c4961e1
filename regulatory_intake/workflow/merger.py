"""
Resumability merger — rebuilds initial step state from the submissions the
backend already holds, so an interrupted wizard resumes where it stopped.

Pure and idempotent: the same definitions and submissions always produce
equal step states.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from regulatory_intake.models.enums import RequirementKind, SubmissionStatus
from regulatory_intake.models.schemas import RequirementDefinition, RequirementSubmission
from regulatory_intake.models.state import StepState
from regulatory_intake.models.values import (
    AddressCandidate,
    CandidateValue,
    DocumentCandidate,
    StoredReference,
    TextCandidate,
    decode_address,
    empty_candidate,
)

logger = logging.getLogger(__name__)


def merge(
    definitions: Sequence[RequirementDefinition],
    existing_values: Sequence[RequirementSubmission],
) -> list[StepState]:
    """One StepState per definition, in catalog order."""
    by_field = {submission.field: submission for submission in existing_values}

    known = {d.id for d in definitions}
    for field in by_field:
        if field not in known:
            logger.debug(f"Ignoring submission for unknown requirement {field}")

    steps: list[StepState] = []
    for definition in definitions:
        submission = by_field.get(definition.id)
        if submission is None:
            steps.append(StepState(
                requirement_id=definition.id,
                kind=definition.kind,
                candidate=empty_candidate(definition.kind),
            ))
            continue

        steps.append(StepState(
            requirement_id=definition.id,
            kind=definition.kind,
            candidate=_seed_candidate(definition, submission),
            committed=submission.status == SubmissionStatus.APPROVED,
            submission_status=submission.status,
            rejection_reason=submission.rejection_reason,
            submitted_at=submission.submitted_at,
        ))
    return steps


def _seed_candidate(definition: RequirementDefinition, submission: RequirementSubmission) -> CandidateValue:
    if submission.document_url:
        reference = StoredReference(url=submission.document_url, status=submission.status)
        parsed = _parse_object(submission.value)
        if parsed is not None:
            reference = reference.model_copy(update=_reference_fields(parsed))
        elif submission.value:
            reference.id = submission.value
        return DocumentCandidate(reference=reference)

    if not submission.value:
        return empty_candidate(definition.kind)

    text = _scalar_text(submission.value)
    if definition.kind == RequirementKind.TEXTUAL:
        # Text is taken as stored, even when it happens to look like JSON
        return TextCandidate(text=text)

    parsed = _parse_object(submission.value)
    if parsed is not None:
        if definition.kind == RequirementKind.DOCUMENT:
            return DocumentCandidate(reference=StoredReference(status=submission.status, **_reference_fields(parsed)))
        return _seed_address(definition, submission, parsed)

    if definition.kind == RequirementKind.DOCUMENT:
        return DocumentCandidate(reference=StoredReference(id=text, status=submission.status))
    return AddressCandidate(reference=StoredReference(id=text, status=submission.status))


def _seed_address(
    definition: RequirementDefinition, submission: RequirementSubmission, parsed: dict[str, Any]
) -> AddressCandidate:
    candidate = AddressCandidate()
    record = decode_address(submission.value)
    if record is None:
        logger.warning(f"Stored value for {definition.id} is not a readable address, starting from an empty one")
    else:
        candidate.record = record
    if parsed.get("id"):
        candidate.reference = StoredReference(id=str(parsed["id"]), status=submission.status)
    return candidate


def _parse_object(raw: str | None) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _scalar_text(raw: str) -> str:
    # A JSON string literal ("\"abc\"") is unwrapped; anything else is taken as-is
    try:
        parsed = json.loads(raw)
    except ValueError:
        return raw
    return parsed if isinstance(parsed, str) else raw


def _reference_fields(parsed: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if parsed.get("id"):
        fields["id"] = str(parsed["id"])
    if parsed.get("filename"):
        fields["filename"] = str(parsed["filename"])
    return fields
