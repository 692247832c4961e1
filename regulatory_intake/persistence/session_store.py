"""
Session Store — keeps live wizard sessions between API calls.
Uses an in-memory dict; sessions idle longer than the configured TTL are evicted.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from regulatory_intake.workflow.launcher import RequirementWorkflow
from regulatory_intake.workflow.wizard import RequirementWizard

logger = logging.getLogger(__name__)


@dataclass
class WizardSession:
    session_id: str
    workflow: RequirementWorkflow
    wizard: RequirementWizard
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    last_seen: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def touch(self) -> None:
        self.last_seen = datetime.now(timezone.utc)


class SessionStore:
    """Save/load wizard sessions by id."""

    def __init__(self, ttl_minutes: int = 60):
        self.ttl = timedelta(minutes=ttl_minutes)
        self._sessions: dict[str, WizardSession] = {}

    def create(self, workflow: RequirementWorkflow, wizard: RequirementWizard) -> WizardSession:
        session = WizardSession(session_id=f"WIZ-{uuid.uuid4().hex[:12]}", workflow=workflow, wizard=wizard)
        self._sessions[session.session_id] = session
        logger.info(f"Opened wizard session {session.session_id} for group {wizard.group.group_id}")
        return session

    def get(self, session_id: str) -> WizardSession | None:
        session = self._sessions.get(session_id)
        if session is not None:
            session.touch()
        return session

    def discard(self, session_id: str) -> WizardSession | None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.info(f"Closed wizard session {session_id}")
        return session

    def evict_expired(self, now: datetime | None = None) -> list[WizardSession]:
        """Drop sessions idle for longer than the TTL and return them."""
        now = now or datetime.now(timezone.utc)
        expired = [s for s in self._sessions.values() if now - s.last_seen > self.ttl]
        for session in expired:
            del self._sessions[session.session_id]
            logger.info(f"Evicted idle wizard session {session.session_id}")
        return expired

    def list_sessions(self) -> list[str]:
        return list(self._sessions.keys())

    def __len__(self) -> int:
        return len(self._sessions)
