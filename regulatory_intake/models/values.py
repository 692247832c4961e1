"""
Candidate values held by wizard steps.

Every requirement kind has its own payload model; the three are combined
into a tagged union discriminated by ``kind`` (the RequirementKind value)
so validators and submitters dispatch on the tag instead of probing the
payload.

Address values travel through the backend's string slot.  ``encode_address``
and ``decode_address`` are the only way in and out of that slot; the
encoded form carries a schema version so other structured kinds can be
told apart later.
"""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .enums import RequirementKind, SubmissionStatus

logger = logging.getLogger(__name__)

ADDRESS_SCHEMA_VERSION = 1
SCHEMA_VERSION_KEY = "schemaVersion"

# snake_case names; the wire uses camelCase
REQUIRED_ADDRESS_FIELDS: tuple[str, ...] = ("street", "city", "postal_code", "state", "country")

# Keys written by the first version of the dashboard
_LEGACY_ADDRESS_KEYS = {
    "streetAddress": "street",
    "locality": "city",
    "administrativeArea": "state",
    "countryCode": "country",
}


# ── Address ──────────────────────────────────────────────


class AddressRecord(BaseModel):
    """Structured address sub-fields.  Unknown keys are kept as extras."""

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
        coerce_numbers_to_str=True,
    )

    street: str = ""
    city: str = ""
    postal_code: str = ""
    state: str = ""
    country: str = ""
    street_number: Optional[str] = None
    street_type: Optional[str] = None
    building_name: Optional[str] = None
    floor: Optional[str] = None
    apartment: Optional[str] = None
    district: Optional[str] = None
    region: Optional[str] = None
    additional_info: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _blank_required_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name in REQUIRED_ADDRESS_FIELDS:
            for key in (name, to_camel(name)):
                if key in data and data[key] is None:
                    data[key] = ""
        return data

    def missing_fields(self) -> list[str]:
        """Wire names of mandatory sub-fields that are blank."""
        return [to_camel(name) for name in REQUIRED_ADDRESS_FIELDS if not getattr(self, name).strip()]

    def to_wire(self) -> dict[str, Any]:
        """camelCase dict with absent optional fields omitted, extras kept."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def with_updates(self, updates: dict[str, Any]) -> AddressRecord:
        """Return a copy with ``updates`` applied; untouched fields survive."""
        data = self.to_wire()
        for key, value in updates.items():
            if key in type(self).model_fields:
                key = to_camel(key)
            data[key] = value
        return AddressRecord.model_validate(data)


def encode_address(record: AddressRecord) -> str:
    """Canonical string form stored in the backend's value slot."""
    data = record.to_wire()
    data[SCHEMA_VERSION_KEY] = ADDRESS_SCHEMA_VERSION
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def decode_address(raw: str) -> AddressRecord | None:
    """
    Parse a stored value back into an AddressRecord.
    Returns None when ``raw`` is not a JSON object or its sub-fields are
    not usable address values.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None

    if SCHEMA_VERSION_KEY in data:
        version = data.pop(SCHEMA_VERSION_KEY)
        if version != ADDRESS_SCHEMA_VERSION:
            logger.warning(f"Address value has schema version {version}, expected {ADDRESS_SCHEMA_VERSION}")
    else:
        # Unversioned values predate the canonical form
        for legacy, current in _LEGACY_ADDRESS_KEYS.items():
            if legacy in data:
                value = data.pop(legacy)
                data.setdefault(to_camel(current), value)

    try:
        return AddressRecord.model_validate(data)
    except ValidationError as exc:
        logger.warning(f"Stored address could not be read: {exc.error_count()} invalid field(s)")
        return None


# ── Candidates ───────────────────────────────────────────


class DocumentFile(BaseModel):
    """A file picked by the user, not yet uploaded."""
    filename: str
    content_type: str = "application/octet-stream"
    content: bytes = Field(default=b"", exclude=True, repr=False)

    @property
    def size(self) -> int:
        return len(self.content)


class StoredReference(BaseModel):
    """A value the backend already holds for a field (document id or validated-address id)."""
    id: str = ""
    filename: str = ""
    url: Optional[str] = None
    status: SubmissionStatus = SubmissionStatus.PENDING

    @property
    def reusable(self) -> bool:
        return bool(self.id) and self.status != SubmissionStatus.REJECTED


class DocumentCandidate(BaseModel):
    kind: Literal["document"] = "document"
    file: Optional[DocumentFile] = None
    reference: Optional[StoredReference] = None


class TextCandidate(BaseModel):
    kind: Literal["textual"] = "textual"
    text: str = ""


class AddressCandidate(BaseModel):
    kind: Literal["address"] = "address"
    record: AddressRecord = Field(default_factory=AddressRecord)
    reference: Optional[StoredReference] = None


CandidateValue = Annotated[
    Union[DocumentCandidate, TextCandidate, AddressCandidate],
    Field(discriminator="kind"),
]

_EMPTY_CANDIDATES = {
    RequirementKind.DOCUMENT: DocumentCandidate,
    RequirementKind.TEXTUAL: TextCandidate,
    RequirementKind.ADDRESS: AddressCandidate,
}


def empty_candidate(kind: RequirementKind) -> CandidateValue:
    return _EMPTY_CANDIDATES[kind]()
