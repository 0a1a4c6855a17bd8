"""Domain events for the expediente form service."""

from dataclasses import dataclass
from datetime import datetime
from typing import List


@dataclass
class Event:
    """Base class for all domain events."""
    pass


@dataclass
class ExpedienteUpdated(Event):
    """Event raised when pending fields of an expediente have been written."""
    expediente_id: str
    fields: List[str]


@dataclass
class AccessTokenIssued(Event):
    token: str
    expediente_id: str
    expires_at: datetime


@dataclass
class AccessTokenConsumed(Event):
    """Event raised when a form link has been used and invalidated."""
    token: str
    expediente_id: str
    used_at: datetime
