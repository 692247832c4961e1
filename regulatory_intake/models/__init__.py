"""Domain models — enums, wire schemas, candidate values, wizard state."""

from .enums import (
    AddressValidationStatus,
    GroupStatus,
    RequirementKind,
    StartOutcome,
    StepErrorKind,
    SubmissionStatus,
    WizardState,
)
from .schemas import (
    AcceptanceCriteria,
    AddressValidationResult,
    DocumentUploadResult,
    GroupResolution,
    GroupStatusReport,
    GroupValidationReport,
    RequirementDefinition,
    RequirementGroup,
    RequirementSubmission,
    RequirementUpdate,
)
from .state import GroupContext, StepError, StepState, WizardSnapshot, WorkflowContext
from .values import (
    AddressCandidate,
    AddressRecord,
    CandidateValue,
    DocumentCandidate,
    DocumentFile,
    StoredReference,
    TextCandidate,
    decode_address,
    empty_candidate,
    encode_address,
)

__all__ = [
    "AddressValidationStatus", "GroupStatus", "RequirementKind", "StartOutcome",
    "StepErrorKind", "SubmissionStatus", "WizardState",
    "AcceptanceCriteria", "AddressValidationResult", "DocumentUploadResult",
    "GroupResolution", "GroupStatusReport", "GroupValidationReport",
    "RequirementDefinition", "RequirementGroup", "RequirementSubmission", "RequirementUpdate",
    "GroupContext", "StepError", "StepState", "WizardSnapshot", "WorkflowContext",
    "AddressCandidate", "AddressRecord", "CandidateValue", "DocumentCandidate",
    "DocumentFile", "StoredReference", "TextCandidate",
    "decode_address", "empty_candidate", "encode_address",
]
