from enum import Enum

class RequirementKind(str, Enum):
    DOCUMENT = "document"
    TEXTUAL = "textual"
    ADDRESS = "address"

class GroupStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"

class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class AddressValidationStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"

class WizardState(str, Enum):
    AT_STEP = "at_step"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class StepErrorKind(str, Enum):
    VALIDATION = "validation"
    SUBMISSION = "submission"
    CONFIGURATION = "configuration"

class StartOutcome(str, Enum):
    READY = "ready"
    ALREADY_COMPLETE = "already_complete"
    BLOCKED = "blocked"
