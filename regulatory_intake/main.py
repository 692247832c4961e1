"""
Regulatory Requirement Intake — Main Entry Point

Check where an organization stands for a jurisdiction (CLI):
    python -m regulatory_intake status <organization_id> <jurisdiction>

Run as an API server (for the dashboard):
    python -m regulatory_intake --serve
    # or: uvicorn regulatory_intake.api:app --reload --port 8000
"""

from __future__ import annotations

import asyncio
import logging
import sys

from regulatory_intake.config import get_settings
from regulatory_intake.models.schemas import GroupStatusReport, RequirementDefinition
from regulatory_intake.services.api_client import BackendClient
from regulatory_intake.services.group_service import RequirementGroupService
from regulatory_intake.services.requirement_service import RequirementService
from regulatory_intake.utils.logger import setup_logging


def status(organization_id: str, jurisdiction: str) -> GroupStatusReport:
    """Resolve the requirement group and log a status summary."""
    setup_logging(get_settings().log_level)
    report, definitions = asyncio.run(_fetch_status(organization_id, jurisdiction.upper()))
    _print_summary(organization_id, jurisdiction.upper(), report, definitions)
    return report


async def _fetch_status(
    organization_id: str, jurisdiction: str
) -> tuple[GroupStatusReport, list[RequirementDefinition]]:
    async with BackendClient() as client:
        definitions = await RequirementService(client).get_jurisdiction_requirements(jurisdiction)
        groups = RequirementGroupService(client)
        resolution = await groups.resolve(organization_id, jurisdiction)
        report = await groups.get_status(resolution.group.id)
    return report, definitions


def _print_summary(
    organization_id: str,
    jurisdiction: str,
    report: GroupStatusReport,
    definitions: list[RequirementDefinition],
) -> None:
    logger = logging.getLogger(__name__)
    by_field = {entry.field: entry for entry in report.requirements}

    logger.info("-" * 60)
    logger.info(f"  REQUIREMENTS FOR {organization_id} IN {jurisdiction}")
    logger.info("-" * 60)
    logger.info(f"  Group:     {report.id}")
    logger.info(f"  Status:    {report.status.value}")
    logger.info(f"  Complete:  {'yes' if report.is_complete else 'no'}")
    if report.valid_until:
        logger.info(f"  Valid to:  {report.valid_until}")
    for definition in definitions:
        entry = by_field.get(definition.id)
        state = entry.status.value if entry else "missing"
        line = f"    {definition.name or definition.id:<32} {definition.kind.value:<9} {state}"
        if entry and entry.rejection_reason:
            line += f" ({entry.rejection_reason})"
        logger.info(line)
    logger.info("-" * 60)


def serve(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Start the FastAPI server (for dashboard communication)."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    logger.info(f"Starting API server on {host}:{port}")
    uvicorn.run("regulatory_intake.api:app", host=host, port=port, reload=settings.debug)


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if "--serve" in args:
        serve()
        return 0
    if len(args) == 3 and args[0] == "status":
        report = status(args[1], args[2])
        return 0 if report.is_complete else 1
    print(__doc__)
    return 2


if __name__ == "__main__":
    sys.exit(main())
