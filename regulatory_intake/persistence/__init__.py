"""Persistence — SessionStore."""

from regulatory_intake.persistence.session_store import SessionStore, WizardSession

__all__ = ["SessionStore", "WizardSession"]
