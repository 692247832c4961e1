"""
Tests: per-kind submitters against the fake backend.

Run with:
    pytest regulatory_intake/tests/test_submitters.py -v
"""

import asyncio
from datetime import datetime, timezone

import pytest

from regulatory_intake.errors import BackendError
from regulatory_intake.models.enums import RequirementKind, SubmissionStatus
from regulatory_intake.models.schemas import RequirementDefinition
from regulatory_intake.models.state import GroupContext
from regulatory_intake.models.values import (
    AddressCandidate,
    AddressRecord,
    DocumentCandidate,
    DocumentFile,
    StoredReference,
    TextCandidate,
)
from regulatory_intake.services.address_service import AddressService
from regulatory_intake.services.document_service import DocumentService
from regulatory_intake.tests.fakes import full_address, make_document
from regulatory_intake.utils.hashing import checksum_matches, document_checksum
from regulatory_intake.workflow.submitters import SubmissionFailed, Submitted, Submitters, document_filename

NOW = datetime(2026, 10, 19, 10, 30, 0, tzinfo=timezone.utc)
GROUP = GroupContext(group_id="grp_1", organization_id="org_1", jurisdiction="FR")
DOCUMENT = RequirementDefinition.model_validate({"id": "doc1", "name": "Proof of Identity", "type": "document"})
ADDRESS = RequirementDefinition.model_validate({"id": "addr1", "name": "Business Address", "type": "address"})
TEXT = RequirementDefinition.model_validate({"id": "name1", "name": "Business Name", "type": "textual"})


def _submitters(backend) -> Submitters:
    client = backend.client()
    return Submitters(DocumentService(client), AddressService(client), clock=lambda: NOW)


class TestDocumentFilename:
    def test_name_is_slug_timestamp_and_extension(self):
        document = DocumentFile(filename="Scan 01.PDF", content_type="application/pdf")
        assert document_filename(DOCUMENT, document, NOW) == "proof_of_identity_20261019T103000Z.pdf"

    def test_falls_back_to_requirement_id(self):
        unnamed = RequirementDefinition.model_validate({"id": "doc9", "type": "document"})
        document = DocumentFile(filename="x.png", content_type="image/png")
        assert document_filename(unnamed, document, NOW) == "doc9_20261019T103000Z.png"


class TestDocumentSubmitter:
    def test_upload_returns_document_id(self, backend):
        backend.document_ids = ["d_123"]
        candidate = DocumentCandidate(file=make_document(2048))
        outcome = asyncio.run(_submitters(backend).submit(GROUP, DOCUMENT, candidate))

        assert outcome == Submitted("d_123")
        assert backend.uploads == [{
            "filename": "proof_of_identity_20261019T103000Z.pdf",
            "customer_reference": "grp_1",
        }]

    def test_stored_reference_is_reused_without_upload(self, backend):
        candidate = DocumentCandidate(reference=StoredReference(id="d_9", status=SubmissionStatus.APPROVED))
        outcome = asyncio.run(_submitters(backend).submit(GROUP, DOCUMENT, candidate))

        assert outcome == Submitted("d_9")
        assert backend.count("POST", "/documents") == 0

    def test_rejected_reference_is_not_reused(self, backend):
        candidate = DocumentCandidate(reference=StoredReference(id="d_9", status=SubmissionStatus.REJECTED))
        outcome = asyncio.run(_submitters(backend).submit(GROUP, DOCUMENT, candidate))
        assert isinstance(outcome, SubmissionFailed)
        assert outcome.code == "missing_document"

    def test_store_rejection_is_a_submission_failure(self, backend):
        backend.failures[("POST", "/documents")] = 400
        outcome = asyncio.run(_submitters(backend).submit(GROUP, DOCUMENT, DocumentCandidate(file=make_document(10))))

        assert isinstance(outcome, SubmissionFailed)
        assert outcome.code == "document_rejected"
        assert "forced failure" in outcome.reason

    def test_missing_id_is_a_submission_failure(self, backend):
        backend.document_ids = [""]
        outcome = asyncio.run(_submitters(backend).submit(GROUP, DOCUMENT, DocumentCandidate(file=make_document(10))))
        assert outcome == SubmissionFailed("Document upload failed - no ID received", code="missing_document_id")

    def test_server_error_is_raised(self, backend):
        backend.failures[("POST", "/documents")] = 503
        with pytest.raises(BackendError) as info:
            asyncio.run(_submitters(backend).submit(GROUP, DOCUMENT, DocumentCandidate(file=make_document(10))))
        assert info.value.status_code == 503


class TestAddressSubmitter:
    def test_valid_address_returns_address_id(self, backend):
        record = AddressRecord.model_validate(full_address())
        outcome = asyncio.run(_submitters(backend).submit(GROUP, ADDRESS, AddressCandidate(record=record)))

        assert isinstance(outcome, Submitted)
        assert outcome.reference.startswith("addr_")
        assert backend.address_requests == [full_address()]

    def test_invalid_address_is_a_submission_failure(self, backend):
        backend.address_verdict = {"id": None, "status": "invalid", "errors": ["Unknown postal code"]}
        record = AddressRecord.model_validate(full_address(postalCode="00000"))
        outcome = asyncio.run(_submitters(backend).submit(GROUP, ADDRESS, AddressCandidate(record=record)))

        assert isinstance(outcome, SubmissionFailed)
        assert outcome.code == "address_invalid"
        assert "Unknown postal code" in outcome.reason

    def test_valid_status_without_id_is_rejected(self, backend):
        backend.address_verdict = {"status": "valid"}
        record = AddressRecord.model_validate(full_address())
        outcome = asyncio.run(_submitters(backend).submit(GROUP, ADDRESS, AddressCandidate(record=record)))
        assert isinstance(outcome, SubmissionFailed)

    def test_client_error_is_a_submission_failure(self, backend):
        backend.failures[("POST", "/validation/address")] = 422
        record = AddressRecord.model_validate(full_address())
        outcome = asyncio.run(_submitters(backend).submit(GROUP, ADDRESS, AddressCandidate(record=record)))
        assert outcome.code == "address_invalid"

    def test_validated_reference_is_reused(self, backend):
        candidate = AddressCandidate(reference=StoredReference(id="addr_7"))
        outcome = asyncio.run(_submitters(backend).submit(GROUP, ADDRESS, candidate))

        assert outcome == Submitted("addr_7")
        assert backend.address_requests == []


class TestTextSubmitter:
    def test_text_is_its_own_reference(self, backend):
        outcome = asyncio.run(_submitters(backend).submit(GROUP, TEXT, TextCandidate(text="ACME SARL")))
        assert outcome == Submitted("ACME SARL")
        assert backend.calls == []


class TestDispatch:
    def test_every_kind_has_a_submitter(self, backend):
        assert set(_submitters(backend)._table) == set(RequirementKind)


class TestChecksum:
    def test_absent_checksum_is_accepted(self):
        assert checksum_matches(b"abc", None)
        assert checksum_matches(b"abc", "")

    def test_bare_and_prefixed_digests(self):
        digest = document_checksum(b"abc")
        assert checksum_matches(b"abc", digest)
        assert checksum_matches(b"abc", f"SHA256:{digest.upper()}")
        assert not checksum_matches(b"abcd", digest)

    def test_unknown_algorithm_is_not_checked(self):
        assert checksum_matches(b"abc", "md5:900150983cd24fb0d6963f7d28e17f72")
