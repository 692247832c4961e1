"""
Exception taxonomy for the intake workflow.

Expected rejections (oversized file, invalid address) are never raised;
validators and submitters return typed results for those.  These
exceptions cover configuration problems and backend/transport failures.
"""

from __future__ import annotations

from typing import Any


class IntakeError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(IntakeError):
    """The workflow cannot start: missing identifiers or an empty catalog."""


class BackendError(IntakeError):
    """The marketplace backend answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: Any = None, *, method: str = "", url: str = ""):
        self.status_code = status_code
        self.detail = detail
        self.method = method
        self.url = url
        super().__init__(f"{method} {url} failed with HTTP {status_code}: {detail}".strip())

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class GroupResolutionError(IntakeError):
    """The requirement group could not be found or created."""


class GroupRejectedError(IntakeError):
    """The requirement group was rejected and needs external intervention."""

    def __init__(self, group_id: str):
        self.group_id = group_id
        super().__init__(f"Requirement group {group_id} was rejected")


class WizardStateError(IntakeError):
    """An operation was attempted in a wizard state that does not allow it."""
