"""
Session-scoped wizard state.

Design rules:
  1. The wizard session exclusively owns its StepState objects.
  2. Submission status fields are a cache of the backend record; they are
     re-derived from the group on every start and never trusted across sessions.
  3. Snapshots are plain data so the API layer can return them as-is.
"""

from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field

from .enums import RequirementKind, StepErrorKind, SubmissionStatus, WizardState
from .values import CandidateValue


class WorkflowContext(BaseModel):
    """Explicit inputs of one workflow run."""
    organization_id: str
    jurisdiction: str
    auth_token: Optional[str] = Field(default=None, repr=False)


class GroupContext(BaseModel):
    """What submitters need to know about the group they are submitting into."""
    group_id: str
    organization_id: str = ""
    jurisdiction: str = ""


class StepError(BaseModel):
    """UI-facing error for one step.  ``kind`` separates bad input from failed saves."""
    kind: StepErrorKind
    code: str = ""
    message: str


class StepState(BaseModel):
    requirement_id: str
    kind: RequirementKind
    candidate: CandidateValue
    committed: bool = False
    edited: bool = False

    # ── Cached backend record ────────────────────────────
    submission_status: Optional[SubmissionStatus] = None
    rejection_reason: Optional[str] = None
    submitted_at: Optional[str] = None

    error: Optional[StepError] = None

    @property
    def preapproved(self) -> bool:
        """Approved on the backend and untouched since."""
        return self.submission_status == SubmissionStatus.APPROVED and not self.edited


class WizardSnapshot(BaseModel):
    state: WizardState
    current_index: int = 0
    total_steps: int = 0
    group_id: str = ""
    current_requirement_id: Optional[str] = None
    steps: list[StepState] = []
    error: Optional[StepError] = None
