"""
Type submitters — turn a validated candidate into a reference the
requirement group can store.

  document → upload to the document store, reference = document id
  address  → validate-and-store via the address service, reference = address id
  textual  → the text itself, no network call

Expected rejections (store refuses the file, address is invalid) come back
as SubmissionFailed.  Server and transport failures are raised and left to
the wizard, which reports them through the same submission-error channel.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Union

from regulatory_intake.errors import BackendError
from regulatory_intake.models.enums import RequirementKind
from regulatory_intake.models.schemas import RequirementDefinition
from regulatory_intake.models.state import GroupContext
from regulatory_intake.models.values import (
    AddressCandidate,
    CandidateValue,
    DocumentCandidate,
    DocumentFile,
    TextCandidate,
)
from regulatory_intake.services.address_service import AddressService
from regulatory_intake.services.document_service import DocumentService
from regulatory_intake.utils.hashing import checksum_matches

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Submitted:
    reference: str


@dataclass(frozen=True)
class SubmissionFailed:
    reason: str
    code: str = "submission_failed"


SubmissionOutcome = Union[Submitted, SubmissionFailed]
SubmitFunc = Callable[[GroupContext, RequirementDefinition, CandidateValue], Awaitable[SubmissionOutcome]]


def document_filename(definition: RequirementDefinition, document: DocumentFile, now: datetime) -> str:
    """Traceable upload name: <requirement name>_<UTC timestamp><extension>."""
    base = re.sub(r"\s+", "_", definition.name.strip().lower()) or definition.id
    base = re.sub(r"[^a-z0-9_\-]", "", base) or definition.id
    suffix = PurePath(document.filename).suffix.lower()
    return f"{base}_{now.strftime('%Y%m%dT%H%M%SZ')}{suffix}"


class Submitters:
    """Kind-indexed submission protocols bound to their backend services."""

    def __init__(
        self,
        documents: DocumentService,
        addresses: AddressService,
        clock: Callable[[], datetime] | None = None,
    ):
        self.documents = documents
        self.addresses = addresses
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._table: dict[RequirementKind, SubmitFunc] = {
            RequirementKind.DOCUMENT: self.submit_document,
            RequirementKind.TEXTUAL: self.submit_text,
            RequirementKind.ADDRESS: self.submit_address,
        }
        if set(self._table) != set(RequirementKind):
            raise RuntimeError("every requirement kind needs a submitter")

    async def submit(
        self, group: GroupContext, definition: RequirementDefinition, candidate: CandidateValue
    ) -> SubmissionOutcome:
        return await self._table[definition.kind](group, definition, candidate)

    # ── Document ─────────────────────────────────────────

    async def submit_document(
        self, group: GroupContext, definition: RequirementDefinition, candidate: DocumentCandidate
    ) -> SubmissionOutcome:
        document = candidate.file
        if document is None:
            if candidate.reference is not None and candidate.reference.reusable:
                logger.info(f"Re-using stored document {candidate.reference.id} for {definition.id}")
                return Submitted(candidate.reference.id)
            return SubmissionFailed("There is no document to submit", code="missing_document")

        filename = document_filename(definition, document, self._clock())
        try:
            result = await self.documents.upload_document(document, filename, customer_reference=group.group_id)
        except BackendError as exc:
            if exc.is_client_error:
                logger.warning(f"Document store rejected {filename}: {exc.detail}")
                return SubmissionFailed(f"The document store rejected the file: {exc.detail}", code="document_rejected")
            raise

        if not result.id:
            return SubmissionFailed("Document upload failed - no ID received", code="missing_document_id")

        if not checksum_matches(document.content, result.checksum):
            logger.warning(f"Checksum mismatch for uploaded document {result.id}")
        return Submitted(result.id)

    # ── Address ──────────────────────────────────────────

    async def submit_address(
        self, group: GroupContext, definition: RequirementDefinition, candidate: AddressCandidate
    ) -> SubmissionOutcome:
        if candidate.reference is not None and candidate.reference.reusable:
            logger.info(f"Re-using validated address {candidate.reference.id} for {definition.id}")
            return Submitted(candidate.reference.id)

        try:
            result = await self.addresses.validate_address(candidate.record)
        except BackendError as exc:
            if exc.is_client_error:
                return SubmissionFailed(f"The address could not be validated: {exc.detail}", code="address_invalid")
            raise

        if not result.accepted:
            detail = "; ".join(result.errors) or f"status {result.status.value}"
            return SubmissionFailed(f"The address could not be validated: {detail}", code="address_invalid")
        return Submitted(result.id)

    # ── Text ─────────────────────────────────────────────

    async def submit_text(
        self, group: GroupContext, definition: RequirementDefinition, candidate: TextCandidate
    ) -> SubmissionOutcome:
        return Submitted(candidate.text)
