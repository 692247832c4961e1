"""Workflow — validators, submitters, resumability merger, wizard state machine, launcher."""

from regulatory_intake.workflow.validators import ValidationResult, validate
from regulatory_intake.workflow.submitters import SubmissionFailed, Submitted, Submitters
from regulatory_intake.workflow.merger import merge
from regulatory_intake.workflow.wizard import RequirementWizard
from regulatory_intake.workflow.launcher import RequirementWorkflow, WorkflowStart

__all__ = [
    "ValidationResult",
    "validate",
    "SubmissionFailed",
    "Submitted",
    "Submitters",
    "merge",
    "RequirementWizard",
    "RequirementWorkflow",
    "WorkflowStart",
]
