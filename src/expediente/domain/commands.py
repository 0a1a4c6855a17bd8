"""Commands for the expediente form service."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict


@dataclass
class Command:
    """Base class for all commands."""
    pass


@dataclass
class SubmitPendingFields(Command):
    """Command to fill the still empty fields of the expediente behind a link."""
    token: str
    data: Dict[str, Any] = field(default_factory=dict)
    submitted_at: datetime = None


@dataclass
class IssueAccessToken(Command):
    """Command to create a new single use form link for an expediente."""
    expediente_id: str
    ttl_hours: int
    issued_at: datetime = None
