"""
Workflow launcher — the entry point the checkout flow talks to.

start():
  1. context check      → ConfigurationError on missing identifiers
  2. catalog fetch      → ConfigurationError on an empty catalog
  3. group resolution   → find-or-create, conflict-safe
  4. group status gate  → active: already complete / rejected: blocked
  5. merge + wizard     → resumes from what the backend already holds

Local step state is always rebuilt from the backend here; nothing from an
earlier session is trusted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Optional

from pydantic import BaseModel, ConfigDict

from regulatory_intake.errors import ConfigurationError, GroupRejectedError
from regulatory_intake.models.enums import GroupStatus, StartOutcome
from regulatory_intake.models.schemas import (
    GroupStatusReport,
    GroupValidationReport,
    RequirementDefinition,
    RequirementGroup,
)
from regulatory_intake.models.state import GroupContext, WorkflowContext
from regulatory_intake.services.address_service import AddressService
from regulatory_intake.services.api_client import BackendClient
from regulatory_intake.services.document_service import DocumentService
from regulatory_intake.services.group_service import RequirementGroupService
from regulatory_intake.services.requirement_service import RequirementService
from regulatory_intake.workflow.merger import merge
from regulatory_intake.workflow.submitters import Submitters
from regulatory_intake.workflow.wizard import RequirementWizard

logger = logging.getLogger(__name__)


class WorkflowStart(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    outcome: StartOutcome
    group: RequirementGroup
    is_new_group: bool = False
    definitions: list[RequirementDefinition] = []
    wizard: Optional[RequirementWizard] = None


class RequirementWorkflow:
    """Wires the services for one (organization, jurisdiction) workflow run."""

    def __init__(
        self,
        context: WorkflowContext,
        client: BackendClient | None = None,
        *,
        on_complete: Callable[[str], None] | None = None,
        on_cancel: Callable[[str], None] | None = None,
    ):
        self.context = context
        self.client = client or BackendClient(auth_token=context.auth_token)
        self.requirements = RequirementService(self.client)
        self.groups = RequirementGroupService(self.client)
        self.submitters = Submitters(DocumentService(self.client), AddressService(self.client))
        self.on_complete = on_complete
        self.on_cancel = on_cancel
        self.group: RequirementGroup | None = None
        self.group_id: str | None = None

    @classmethod
    def for_group(cls, group_id: str, client: BackendClient) -> RequirementWorkflow:
        """A workflow bound to an already resolved group, for polling and finalization."""
        workflow = cls(WorkflowContext(organization_id="", jurisdiction=""), client)
        workflow.group_id = group_id
        return workflow

    async def start(self) -> WorkflowStart:
        organization_id = self.context.organization_id.strip()
        jurisdiction = self.context.jurisdiction.strip().upper()
        if not organization_id:
            raise ConfigurationError("An organization id is required to collect requirements")
        if not jurisdiction:
            raise ConfigurationError("A jurisdiction code is required to collect requirements")

        definitions = await self.requirements.get_jurisdiction_requirements(jurisdiction)
        if not definitions:
            raise ConfigurationError(f"No requirements are configured for {jurisdiction}")

        resolution = await self.groups.resolve(organization_id, jurisdiction)
        group = resolution.group
        self.group = group
        self.group_id = group.id

        if group.status == GroupStatus.ACTIVE:
            logger.info(f"Group {group.id} is already active, nothing to collect")
            if self.on_complete:
                self.on_complete(group.id)
            return WorkflowStart(
                outcome=StartOutcome.ALREADY_COMPLETE,
                group=group,
                is_new_group=resolution.is_new,
                definitions=definitions,
            )

        if group.status == GroupStatus.REJECTED:
            logger.warning(f"Group {group.id} was rejected; external intervention required")
            return WorkflowStart(
                outcome=StartOutcome.BLOCKED,
                group=group,
                is_new_group=resolution.is_new,
                definitions=definitions,
            )

        steps = merge(definitions, group.requirements)
        wizard = RequirementWizard(
            GroupContext(group_id=group.id, organization_id=organization_id, jurisdiction=jurisdiction),
            definitions,
            steps,
            submitters=self.submitters,
            groups=self.groups,
            on_complete=self.on_complete,
            on_cancel=self.on_cancel,
        )
        committed = sum(1 for s in steps if s.committed)
        logger.info(
            f"Wizard ready for group {group.id}: {committed}/{len(steps)} step(s) already approved, "
            f"starting at step {wizard.index}"
        )
        return WorkflowStart(
            outcome=StartOutcome.READY,
            group=group,
            is_new_group=resolution.is_new,
            definitions=definitions,
            wizard=wizard,
        )

    async def poll_status(self) -> GroupStatusReport:
        return await self.groups.get_status(self._group_id())

    async def finalize(self) -> GroupValidationReport:
        """Ask the backend to check the whole group once every step is in."""
        group_id = self._group_id()
        if self.group is not None and self.group.status == GroupStatus.REJECTED:
            raise GroupRejectedError(group_id)
        return await self.groups.validate_group(group_id)

    async def aclose(self) -> None:
        await self.client.aclose()

    def _group_id(self) -> str:
        if self.group_id is None:
            raise ConfigurationError("The workflow has not been started")
        return self.group_id
