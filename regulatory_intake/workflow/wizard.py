"""Requirement wizard state machine using the transitions library.

Walks the requirement list one step at a time.  Each ``next()`` validates
the current candidate, runs its submitter, and persists the resulting
reference to the requirement group before the next step is shown.

Usage:
    from regulatory_intake.workflow.wizard import RequirementWizard

    wizard = RequirementWizard(group, definitions, steps, submitters=..., groups=...)
    wizard.set_text("ACME Telecom Ltd")
    await wizard.next()   # validate → submit → persist → advance
    wizard.back()
    wizard.cancel()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

import httpx
from pydantic import ValidationError
from transitions import Machine

from regulatory_intake.errors import BackendError, WizardStateError
from regulatory_intake.models.enums import (
    RequirementKind,
    StepErrorKind,
    SubmissionStatus,
    WizardState,
)
from regulatory_intake.models.schemas import (
    RequirementDefinition,
    RequirementGroup,
    RequirementUpdate,
)
from regulatory_intake.models.state import GroupContext, StepError, StepState, WizardSnapshot
from regulatory_intake.models.values import (
    AddressCandidate,
    DocumentCandidate,
    DocumentFile,
    StoredReference,
    TextCandidate,
    empty_candidate,
)
from regulatory_intake.services.group_service import RequirementGroupService
from regulatory_intake.workflow.submitters import SubmissionFailed, Submitters
from regulatory_intake.workflow.validators import validate

logger = logging.getLogger(__name__)


AT_STEP = WizardState.AT_STEP.value
PROCESSING = WizardState.PROCESSING.value
COMPLETED = WizardState.COMPLETED.value
CANCELLED = WizardState.CANCELLED.value

STATES = [AT_STEP, PROCESSING, COMPLETED, CANCELLED]

# The step index lives on the model; at_step -> at_step moves it
TRANSITIONS = [
    {"trigger": "begin_processing", "source": AT_STEP, "dest": PROCESSING},
    {"trigger": "processing_failed", "source": PROCESSING, "dest": AT_STEP},
    {"trigger": "advance", "source": PROCESSING, "dest": AT_STEP, "after": "_move_forward"},
    {"trigger": "finish", "source": PROCESSING, "dest": COMPLETED},
    {"trigger": "step_back", "source": AT_STEP, "dest": AT_STEP,
     "conditions": "_has_previous_step", "after": "_move_back"},
    {"trigger": "abort", "source": [AT_STEP, PROCESSING], "dest": CANCELLED},
]


class RequirementWizard:
    """Sequential, commit-per-step collection of one group's requirements.

    At most one ``next()`` is in flight: while a submission is pending the
    machine sits in ``processing`` and further ``next()`` calls are no-ops.
    """

    def __init__(
        self,
        group: GroupContext,
        definitions: Sequence[RequirementDefinition],
        steps: Sequence[StepState],
        *,
        submitters: Submitters,
        groups: RequirementGroupService,
        on_complete: Callable[[str], None] | None = None,
        on_cancel: Callable[[str], None] | None = None,
    ):
        if [d.id for d in definitions] != [s.requirement_id for s in steps]:
            raise ValueError("steps must match the requirement definitions one to one, in order")

        self.group = group
        self.definitions = list(definitions)
        self.steps = list(steps)
        self.submitters = submitters
        self.groups = groups
        self.on_complete = on_complete
        self.on_cancel = on_cancel

        self.index = self._first_open_step()
        self.error: StepError | None = None
        self._cancel_reason = ""

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=AT_STEP if self.steps else CANCELLED,
            auto_transitions=False,  # Only explicit transitions
            send_event=True,  # Pass EventData to callbacks
            after_state_change="_on_state_change",
        )

        if not self.steps:
            # An empty catalog is an upstream configuration problem, not a workflow
            logger.warning(f"[WIZARD] {group.group_id}: no requirements, cancelling immediately")
            self.error = StepError(
                kind=StepErrorKind.CONFIGURATION,
                code="empty_catalog",
                message="There are no requirements to collect for this jurisdiction",
            )
            self._cancel_reason = "empty_catalog"
            self._notify(self.on_cancel, self._cancel_reason)

    # ── Introspection ────────────────────────────────────

    @property
    def current_step(self) -> StepState | None:
        if self.state in (AT_STEP, PROCESSING) and self.steps:
            return self.steps[self.index]
        return None

    @property
    def current_definition(self) -> RequirementDefinition | None:
        if self.current_step is None:
            return None
        return self.definitions[self.index]

    @property
    def is_finished(self) -> bool:
        return self.state in (COMPLETED, CANCELLED)

    def snapshot(self) -> WizardSnapshot:
        step = self.current_step
        return WizardSnapshot(
            state=WizardState(self.state),
            current_index=self.index,
            total_steps=len(self.steps),
            group_id=self.group.group_id,
            current_requirement_id=step.requirement_id if step else None,
            steps=[s.model_copy(deep=True) for s in self.steps],
            error=self.error,
        )

    # ── Editing ──────────────────────────────────────────

    def set_text(self, text: str, requirement_id: str | None = None) -> StepState:
        step = self._editable_step(requirement_id, RequirementKind.TEXTUAL)
        step.candidate = TextCandidate(text=text)
        return self._mark_edited(step)

    def set_address_fields(self, fields: dict[str, Any], requirement_id: str | None = None) -> StepState:
        """Merge ``fields`` into the current address; untouched sub-fields are kept."""
        step = self._editable_step(requirement_id, RequirementKind.ADDRESS)
        record = step.candidate.record.with_updates(fields)
        # An edited address has to go through validation again
        step.candidate = AddressCandidate(record=record)
        return self._mark_edited(step)

    def attach_document(self, document: DocumentFile, requirement_id: str | None = None) -> StepState:
        step = self._editable_step(requirement_id, RequirementKind.DOCUMENT)
        step.candidate = DocumentCandidate(file=document, reference=step.candidate.reference)
        return self._mark_edited(step)

    # ── Navigation ───────────────────────────────────────

    async def next(self) -> WizardSnapshot:
        """Validate, submit, and persist the current step, then move on."""
        if self.state != AT_STEP:
            logger.debug(f"[WIZARD] {self.group.group_id}: next() ignored in state {self.state}")
            return self.snapshot()

        step = self.steps[self.index]
        definition = self.definitions[self.index]
        step.error = None

        if step.preapproved:
            logger.info(f"[WIZARD] {self.group.group_id}: {definition.id} already approved, skipping submission")
            step.committed = True
            self.begin_processing()
            self._complete_step()
            return self.snapshot()

        verdict = validate(definition, step.candidate)
        if not verdict.ok:
            step.error = StepError(kind=StepErrorKind.VALIDATION, code=verdict.code, message=verdict.reason)
            logger.info(f"[WIZARD] {self.group.group_id}: {definition.id} invalid ({verdict.code})")
            return self.snapshot()

        self.begin_processing()
        try:
            outcome = await self.submitters.submit(self.group, definition, step.candidate)
            if self.state == CANCELLED:
                logger.info(f"[WIZARD] {self.group.group_id}: cancelled during submission, result dropped")
                return self.snapshot()
            if isinstance(outcome, SubmissionFailed):
                self._fail_step(step, outcome.code, outcome.reason)
                return self.snapshot()

            updated = await self.groups.update_requirements(
                self.group.group_id,
                [RequirementUpdate(requirement_id=definition.id, value=outcome.reference)],
            )
        except (BackendError, httpx.HTTPError) as exc:
            logger.error(f"[WIZARD] {self.group.group_id}: could not save {definition.id}: {exc}")
            if self.state == PROCESSING:
                self._fail_step(step, "backend_unavailable", f"We could not save this step, please try again ({exc})")
            return self.snapshot()
        except ValidationError as exc:
            logger.error(f"[WIZARD] {self.group.group_id}: unreadable backend answer while saving {definition.id}: {exc}")
            if self.state == PROCESSING:
                self._fail_step(step, "unexpected_response", "The server sent an answer we could not read, please try again")
            return self.snapshot()
        except Exception:
            # Never leave the machine stuck in processing
            if self.state == PROCESSING:
                self.processing_failed()
            raise

        if self.state == CANCELLED:
            logger.info(f"[WIZARD] {self.group.group_id}: cancelled during persistence, result dropped")
            return self.snapshot()

        self._record_commit(step, outcome.reference, updated)
        self._complete_step()
        return self.snapshot()

    def back(self) -> bool:
        """Return to the previous step.  Committed data is kept."""
        if self.state != AT_STEP:
            return False
        return self.step_back()

    def cancel(self, reason: str = "user") -> bool:
        """Leave the wizard.  Committed submissions stay on the backend."""
        if self.state not in (AT_STEP, PROCESSING):
            return False
        for step in self.steps:
            if step.edited:
                step.candidate = empty_candidate(step.kind)
                step.edited = False
        self._cancel_reason = reason
        return self.abort()

    # ── Internals ────────────────────────────────────────

    def _first_open_step(self) -> int:
        for i, step in enumerate(self.steps):
            if not step.committed:
                return i
        return max(len(self.steps) - 1, 0)

    def _editable_step(self, requirement_id: str | None, kind: RequirementKind) -> StepState:
        if self.state != AT_STEP:
            raise WizardStateError(f"Steps cannot be edited while the wizard is {self.state}")
        if requirement_id is None:
            step = self.steps[self.index]
        else:
            matches = [s for s in self.steps if s.requirement_id == requirement_id]
            if not matches:
                raise KeyError(requirement_id)
            step = matches[0]
        if step.kind != kind:
            raise ValueError(f"Requirement {step.requirement_id} expects a {step.kind.value} value, not {kind.value}")
        return step

    def _mark_edited(self, step: StepState) -> StepState:
        step.edited = True
        # Editing a committed value means it has to be committed again
        step.committed = False
        step.error = None
        return step

    def _fail_step(self, step: StepState, code: str, message: str) -> None:
        step.error = StepError(kind=StepErrorKind.SUBMISSION, code=code, message=message)
        logger.warning(f"[WIZARD] {self.group.group_id}: {step.requirement_id} not saved ({code}): {message}")
        self.processing_failed()

    def _record_commit(self, step: StepState, reference: str, updated: RequirementGroup | None) -> None:
        step.committed = True
        step.edited = False
        step.submission_status = SubmissionStatus.PENDING
        step.rejection_reason = None

        record = updated.submission_for(step.requirement_id) if updated is not None else None
        if record is not None:
            step.submission_status = record.status
            step.rejection_reason = record.rejection_reason
            step.submitted_at = record.submitted_at

        candidate = step.candidate
        if isinstance(candidate, DocumentCandidate):
            filename = candidate.file.filename if candidate.file else (candidate.reference.filename if candidate.reference else "")
            step.candidate = DocumentCandidate(
                reference=StoredReference(id=reference, filename=filename, status=step.submission_status),
            )
        elif isinstance(candidate, AddressCandidate):
            step.candidate = AddressCandidate(
                record=candidate.record,
                reference=StoredReference(id=reference, status=step.submission_status),
            )

        logger.info(f"[WIZARD] {self.group.group_id}: committed {step.requirement_id}")

    def _complete_step(self) -> None:
        if self.index + 1 < len(self.steps):
            self.advance()
        else:
            self.finish()

    def _move_forward(self, event) -> None:
        self.index += 1

    def _move_back(self, event) -> None:
        self.index -= 1

    def _has_previous_step(self, event) -> bool:
        return self.index > 0

    def _on_state_change(self, event) -> None:
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name
        logger.info(f"[WIZARD] {self.group.group_id}: {from_state} -> {to_state} ({trigger}) at step {self.index}")

    def on_enter_completed(self, event) -> None:
        logger.info(f"[WIZARD] {self.group.group_id}: all {len(self.steps)} requirement(s) submitted")
        self._notify(self.on_complete, self.group.group_id)

    def on_enter_cancelled(self, event) -> None:
        self._notify(self.on_cancel, self._cancel_reason)

    def _notify(self, callback: Callable[[str], None] | None, value: str) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            logger.exception(f"[WIZARD] {self.group.group_id}: signal handler failed")
