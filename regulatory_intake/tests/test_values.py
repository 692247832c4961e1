"""
Tests: address value codec and candidate helpers.

Run with:
    pytest regulatory_intake/tests/test_values.py -v
"""

import json

from regulatory_intake.models.enums import RequirementKind, SubmissionStatus
from regulatory_intake.models.values import (
    AddressCandidate,
    AddressRecord,
    DocumentCandidate,
    StoredReference,
    TextCandidate,
    decode_address,
    empty_candidate,
    encode_address,
)


class TestAddressCodec:
    def test_round_trip_required_fields_only(self):
        record = AddressRecord(street="Rue de Rivoli", city="Paris", postal_code="75001", state="IDF", country="FR")
        assert decode_address(encode_address(record)) == record

    def test_round_trip_with_optional_fields(self):
        record = AddressRecord(
            street="Main St",
            city="Springfield",
            postal_code="62701",
            state="IL",
            country="US",
            street_number="742",
            apartment="3B",
            additional_info="Ring twice",
        )
        decoded = decode_address(encode_address(record))
        assert decoded == record
        assert decoded.apartment == "3B"
        assert decoded.floor is None

    def test_round_trip_keeps_unknown_keys(self):
        record = AddressRecord.model_validate({
            "street": "Kings Road",
            "city": "London",
            "postalCode": "SW3",
            "state": "London",
            "country": "GB",
            "buildingCode": "B2",
        })
        decoded = decode_address(encode_address(record))
        assert decoded == record
        assert decoded.to_wire()["buildingCode"] == "B2"

    def test_encoding_is_canonical(self):
        a = AddressRecord.model_validate({"country": "FR", "city": "Paris", "street": "Rue A", "postalCode": "1", "state": "S"})
        b = AddressRecord.model_validate({"street": "Rue A", "state": "S", "postalCode": "1", "city": "Paris", "country": "FR"})
        assert encode_address(a) == encode_address(b)

    def test_encoding_carries_schema_version(self):
        encoded = json.loads(encode_address(AddressRecord(street="x")))
        assert encoded["schemaVersion"] == 1
        assert encoded["postalCode"] == ""
        assert "streetNumber" not in encoded

    def test_non_object_values_do_not_decode(self):
        assert decode_address("d_123") is None
        assert decode_address('"plain string"') is None
        assert decode_address("[1, 2]") is None

    def test_nested_sub_field_does_not_decode(self):
        assert decode_address(json.dumps({"street": {"line1": "x"}, "city": "Paris"})) is None

    def test_legacy_keys_are_mapped(self):
        raw = json.dumps({
            "streetAddress": "1 Main St",
            "locality": "Springfield",
            "postalCode": "62701",
            "administrativeArea": "IL",
            "countryCode": "US",
        })
        record = decode_address(raw)
        assert record.street == "1 Main St"
        assert record.city == "Springfield"
        assert record.state == "IL"
        assert record.country == "US"
        assert record.missing_fields() == []

    def test_versioned_values_keep_legacy_named_keys(self):
        raw = json.dumps({"schemaVersion": 1, "street": "A", "city": "B", "locality": "old"})
        record = decode_address(raw)
        assert record.city == "B"
        assert record.to_wire()["locality"] == "old"

    def test_numeric_postal_code_is_text(self):
        record = decode_address('{"postalCode": 75001}')
        assert record.postal_code == "75001"


class TestAddressRecord:
    def test_missing_fields_use_wire_names(self):
        record = AddressRecord(street="A", city="B", state="C")
        assert record.missing_fields() == ["postalCode", "country"]

    def test_whitespace_counts_as_missing(self):
        record = AddressRecord(street="A", city="  ", postal_code="1", state="C", country="FR")
        assert record.missing_fields() == ["city"]

    def test_null_required_field_is_blank(self):
        record = AddressRecord.model_validate({"street": None, "city": "Paris"})
        assert record.street == ""

    def test_with_updates_keeps_untouched_fields(self):
        record = AddressRecord(street="A", city="B", postal_code="1", state="C", country="FR")
        updated = record.with_updates({"city": "Lyon", "postalCode": "69001", "floor": "2"})
        assert updated.street == "A"
        assert updated.city == "Lyon"
        assert updated.postal_code == "69001"
        assert updated.floor == "2"
        assert record.city == "B"

    def test_with_updates_accepts_snake_case(self):
        updated = AddressRecord().with_updates({"postal_code": "75001"})
        assert updated.postal_code == "75001"


class TestCandidates:
    def test_empty_candidate_per_kind(self):
        assert isinstance(empty_candidate(RequirementKind.DOCUMENT), DocumentCandidate)
        assert isinstance(empty_candidate(RequirementKind.TEXTUAL), TextCandidate)
        assert isinstance(empty_candidate(RequirementKind.ADDRESS), AddressCandidate)
        assert empty_candidate(RequirementKind.TEXTUAL).text == ""

    def test_rejected_reference_is_not_reusable(self):
        assert StoredReference(id="d_1").reusable
        assert StoredReference(id="d_1", status=SubmissionStatus.APPROVED).reusable
        assert not StoredReference(id="d_1", status=SubmissionStatus.REJECTED).reusable
        assert not StoredReference().reusable
