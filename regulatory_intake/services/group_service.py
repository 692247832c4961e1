"""
Requirement Group Service — find-or-create resolver and field-scoped updates
for the backend requirement group, the system of record for submissions.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from regulatory_intake.errors import BackendError, GroupResolutionError
from regulatory_intake.models.schemas import (
    GroupResolution,
    GroupStatusReport,
    GroupValidationReport,
    RequirementGroup,
    RequirementUpdate,
)
from regulatory_intake.services.api_client import BackendClient

logger = logging.getLogger(__name__)


class RequirementGroupService:
    """
    Resolves the one group per (organization, jurisdiction) and writes to it.

    Lookup-then-create is race-safe: a 409 on create means another actor
    won, so the winner is fetched instead of surfacing an error.
    """

    def __init__(self, client: BackendClient):
        self.client = client

    # ── Resolution ───────────────────────────────────────

    async def resolve(self, organization_id: str, jurisdiction: str) -> GroupResolution:
        key = f"{organization_id}/{jurisdiction}"
        try:
            existing = await self.find_group(organization_id, jurisdiction)
            if existing is not None:
                logger.info(f"Found requirement group {existing.id} for {key} (status={existing.status.value})")
                return GroupResolution(group=existing, is_new=False)

            try:
                created = await self.create_group(organization_id, jurisdiction)
            except BackendError as exc:
                if not exc.is_conflict:
                    raise
                logger.info(f"Group for {key} created concurrently, fetching the winner")
                winner = await self.find_group(organization_id, jurisdiction)
                if winner is None:
                    raise GroupResolutionError(
                        f"Group creation for {key} conflicted but no group could be found"
                    ) from exc
                return GroupResolution(group=winner, is_new=False)

            logger.info(f"Created requirement group {created.id} for {key}")
            return GroupResolution(group=created, is_new=True)

        except (BackendError, httpx.HTTPError) as exc:
            logger.error(f"Could not resolve requirement group for {key}: {exc}")
            raise GroupResolutionError(f"Could not resolve requirement group for {key}: {exc}") from exc

    async def find_group(self, organization_id: str, jurisdiction: str) -> RequirementGroup | None:
        try:
            payload = await self.client.get(_group_path(organization_id, jurisdiction) + "/group")
        except BackendError as exc:
            if exc.is_not_found:
                return None
            raise
        if not payload:
            return None
        # Some deployments wrap the record as {"group": ..., "isNew": ...}
        if isinstance(payload, dict) and "group" in payload:
            payload = payload["group"]
        return RequirementGroup.model_validate(payload)

    async def create_group(self, organization_id: str, jurisdiction: str) -> RequirementGroup:
        payload = await self.client.post(
            _group_path(organization_id, jurisdiction) + "/groups",
            json={"companyId": organization_id, "destinationZone": jurisdiction},
        )
        if isinstance(payload, dict) and "group" in payload:
            payload = payload["group"]
        return RequirementGroup.model_validate(payload)

    # ── Writes ───────────────────────────────────────────

    async def update_requirements(
        self, group_id: str, updates: list[RequirementUpdate]
    ) -> RequirementGroup | None:
        """
        Overwrite only the named fields.  Returns the updated group when the
        backend sends one back.
        """
        body = {"requirements": [u.model_dump(by_alias=True) for u in updates]}
        fields = ", ".join(u.requirement_id for u in updates)
        payload = await self.client.patch(f"/requirement-groups/{quote(group_id)}/requirements", json=body)
        logger.info(f"Updated group {group_id}: {fields}")

        if not (isinstance(payload, dict) and payload.get("id")):
            return None
        try:
            return RequirementGroup.model_validate(payload)
        except ValidationError as exc:
            # The write has landed; only the echoed group is unusable
            logger.warning(f"Group {group_id} update answer could not be read: {exc.error_count()} invalid field(s)")
            return None

    # ── Status ───────────────────────────────────────────

    async def get_status(self, group_id: str) -> GroupStatusReport:
        payload = await self.client.get(f"/requirements/groups/{quote(group_id)}/status")
        report = GroupStatusReport.model_validate(payload or {})
        if report.id is None:
            report.id = group_id
        return report

    async def validate_group(self, group_id: str) -> GroupValidationReport:
        """Ask the backend to check the complete group before provisioning."""
        payload = await self.client.post(f"/requirements/groups/{quote(group_id)}/validate")
        report = GroupValidationReport.model_validate(payload or {})
        if report.missing_requirements:
            missing = ", ".join(m.field for m in report.missing_requirements)
            logger.warning(f"Group {group_id} is missing: {missing}")
        return report


def _group_path(organization_id: str, jurisdiction: str) -> str:
    return f"/requirements/companies/{quote(organization_id)}/countries/{quote(jurisdiction)}"
