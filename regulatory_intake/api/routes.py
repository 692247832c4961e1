"""
API routes — thin HTTP layer over the requirement workflow.

Routes:
  GET  /health                                   → API health check
  POST /api/workflows                            → Start (or resume) a wizard for an organization + jurisdiction
  GET  /api/workflows/{session_id}               → Current wizard snapshot
  PUT  /api/workflows/{session_id}/text          → Edit the current text step
  PUT  /api/workflows/{session_id}/address       → Edit the current address step
  POST /api/workflows/{session_id}/document      → Attach a file to the current document step
  POST /api/workflows/{session_id}/next          → Validate, submit, persist, advance
  POST /api/workflows/{session_id}/back          → Previous step
  POST /api/workflows/{session_id}/cancel        → Leave the wizard
  GET  /api/groups/{group_id}/status             → Poll group status
  POST /api/groups/{group_id}/finalize           → Ask the backend to validate the whole group
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, File, Header, HTTPException, UploadFile
from pydantic import BaseModel

from regulatory_intake.config import get_settings
from regulatory_intake.errors import (
    BackendError,
    ConfigurationError,
    GroupResolutionError,
    WizardStateError,
)
from regulatory_intake.models.enums import StartOutcome, WizardState
from regulatory_intake.models.schemas import GroupStatusReport, GroupValidationReport
from regulatory_intake.models.state import WizardSnapshot, WorkflowContext
from regulatory_intake.models.values import DocumentFile
from regulatory_intake.persistence.session_store import SessionStore, WizardSession
from regulatory_intake.services.api_client import BackendClient
from regulatory_intake.workflow.launcher import RequirementWorkflow

logger = logging.getLogger(__name__)

# ── Routers ──────────────────────────────────────────────
health_router = APIRouter()
workflow_router = APIRouter()
group_router = APIRouter()

ClientFactory = Callable[[Optional[str]], BackendClient]


# ── Dependencies ─────────────────────────────────────────

@lru_cache()
def get_session_store() -> SessionStore:
    return SessionStore(ttl_minutes=get_settings().session_ttl_minutes)


def get_client_factory() -> ClientFactory:
    return lambda token: BackendClient(auth_token=token)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


# ── Request / response schemas ───────────────────────────

class StartRequest(BaseModel):
    organization_id: str
    jurisdiction: str


class StartResponse(BaseModel):
    outcome: StartOutcome
    group_id: str
    is_new_group: bool = False
    session_id: Optional[str] = None
    snapshot: Optional[WizardSnapshot] = None


class TextRequest(BaseModel):
    value: str


class AddressRequest(BaseModel):
    address: dict[str, Any]


class BackResponse(BaseModel):
    moved: bool
    snapshot: WizardSnapshot


# ── Health ───────────────────────────────────────────────

@health_router.get("/health")
async def health_check():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ── Workflow sessions ────────────────────────────────────

@workflow_router.post("", response_model=StartResponse)
async def start_workflow(
    body: StartRequest,
    authorization: Optional[str] = Header(default=None),
    store: SessionStore = Depends(get_session_store),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    for expired in store.evict_expired():
        await expired.workflow.aclose()

    token = _bearer_token(authorization)
    context = WorkflowContext(organization_id=body.organization_id, jurisdiction=body.jurisdiction, auth_token=token)
    workflow = RequirementWorkflow(context, client_factory(token))

    try:
        started = await workflow.start()
    except ConfigurationError as exc:
        await workflow.aclose()
        raise HTTPException(status_code=422, detail=str(exc))
    except (GroupResolutionError, BackendError, httpx.HTTPError) as exc:
        await workflow.aclose()
        logger.error(f"Could not start workflow for {body.organization_id}/{body.jurisdiction}: {exc}")
        raise HTTPException(status_code=502, detail=str(exc))

    if started.wizard is None:
        await workflow.aclose()
        return StartResponse(outcome=started.outcome, group_id=started.group.id, is_new_group=started.is_new_group)

    session = store.create(workflow, started.wizard)
    return StartResponse(
        outcome=started.outcome,
        group_id=started.group.id,
        is_new_group=started.is_new_group,
        session_id=session.session_id,
        snapshot=started.wizard.snapshot(),
    )


def _session_or_404(session_id: str, store: SessionStore) -> WizardSession:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Wizard session {session_id} not found")
    return session


@workflow_router.get("/{session_id}", response_model=WizardSnapshot)
async def get_snapshot(session_id: str, store: SessionStore = Depends(get_session_store)):
    return _session_or_404(session_id, store).wizard.snapshot()


@workflow_router.put("/{session_id}/text", response_model=WizardSnapshot)
async def edit_text(session_id: str, body: TextRequest, store: SessionStore = Depends(get_session_store)):
    wizard = _session_or_404(session_id, store).wizard
    _apply_edit(lambda: wizard.set_text(body.value))
    return wizard.snapshot()


@workflow_router.put("/{session_id}/address", response_model=WizardSnapshot)
async def edit_address(session_id: str, body: AddressRequest, store: SessionStore = Depends(get_session_store)):
    wizard = _session_or_404(session_id, store).wizard
    _apply_edit(lambda: wizard.set_address_fields(body.address))
    return wizard.snapshot()


@workflow_router.post("/{session_id}/document", response_model=WizardSnapshot)
async def attach_document(
    session_id: str,
    file: UploadFile = File(...),
    store: SessionStore = Depends(get_session_store),
):
    wizard = _session_or_404(session_id, store).wizard
    document = DocumentFile(
        filename=file.filename or "document",
        content_type=file.content_type or "application/octet-stream",
        content=await file.read(),
    )
    _apply_edit(lambda: wizard.attach_document(document))
    return wizard.snapshot()


def _apply_edit(edit: Callable[[], Any]) -> None:
    try:
        edit()
    except WizardStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@workflow_router.post("/{session_id}/next", response_model=WizardSnapshot)
async def next_step(session_id: str, store: SessionStore = Depends(get_session_store)):
    session = _session_or_404(session_id, store)
    try:
        snapshot = await session.wizard.next()
    finally:
        # Also closes a session cancelled while this request was pending
        if session.wizard.is_finished:
            store.discard(session_id)
            await session.workflow.aclose()
    return snapshot


@workflow_router.post("/{session_id}/back", response_model=BackResponse)
async def previous_step(session_id: str, store: SessionStore = Depends(get_session_store)):
    wizard = _session_or_404(session_id, store).wizard
    moved = wizard.back()
    return BackResponse(moved=moved, snapshot=wizard.snapshot())


@workflow_router.post("/{session_id}/cancel", response_model=WizardSnapshot)
async def cancel_workflow(session_id: str, store: SessionStore = Depends(get_session_store)):
    session = _session_or_404(session_id, store)
    in_flight = session.wizard.state == WizardState.PROCESSING.value
    session.wizard.cancel()
    store.discard(session_id)
    if in_flight:
        # The pending /next request finishes its backend call and closes the client
        logger.info(f"Session {session_id} cancelled while a step was being saved")
    else:
        await session.workflow.aclose()
    return session.wizard.snapshot()


# ── Group status ─────────────────────────────────────────

@group_router.get("/{group_id}/status", response_model=GroupStatusReport)
async def group_status(
    group_id: str,
    authorization: Optional[str] = Header(default=None),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    async with client_factory(_bearer_token(authorization)) as client:
        try:
            return await RequirementWorkflow.for_group(group_id, client).poll_status()
        except BackendError as exc:
            status = 404 if exc.is_not_found else 502
            raise HTTPException(status_code=status, detail=str(exc))
        except httpx.HTTPError as exc:
            raise HTTPException(status_code=502, detail=str(exc))


@group_router.post("/{group_id}/finalize", response_model=GroupValidationReport)
async def finalize_group(
    group_id: str,
    authorization: Optional[str] = Header(default=None),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    async with client_factory(_bearer_token(authorization)) as client:
        try:
            return await RequirementWorkflow.for_group(group_id, client).finalize()
        except BackendError as exc:
            status = 404 if exc.is_not_found else 502
            raise HTTPException(status_code=status, detail=str(exc))
        except httpx.HTTPError as exc:
            raise HTTPException(status_code=502, detail=str(exc))
