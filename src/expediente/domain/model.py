from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from expediente.domain import fields
from expediente.domain.events import AccessTokenConsumed, ExpedienteUpdated


class InvalidToken(Exception):
    pass


class LinkAlreadyUsed(Exception):
    pass


class LinkExpired(Exception):
    pass


class ExpedienteNotFound(Exception):
    pass


def as_utc(moment: datetime) -> datetime:
    """Stores without timezone support hand back naive datetimes, read them as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(unsafe_hash=True)
class AccessToken:
    token: str
    expediente_id: str
    expires_at: datetime
    used_at: Optional[datetime] = field(default=None, compare=False)
    events: List = field(default_factory=list, compare=False, hash=False)

    def check_usable(self, now: datetime) -> None:
        """Raise unless the link can still be used at `now`."""
        if self.used_at:
            raise LinkAlreadyUsed("Link already used")
        if as_utc(self.expires_at) < as_utc(now):
            raise LinkExpired("Link expired")

    def consume(self, now: datetime) -> None:
        self.used_at = now
        self.events.append(
            AccessTokenConsumed(token=self.token, expediente_id=self.expediente_id, used_at=now)
        )


class Expediente:
    """Case record holding the catalog columns, written at most once per field."""

    def __init__(self, id_: str, **values: Any):
        unknown = set(values) - set(fields.FIELDS_BY_NAME)
        if unknown:
            raise ValueError(f"Unknown expediente fields: {sorted(unknown)}")
        self.id_ = id_
        for spec in fields.FIELDS:
            setattr(self, spec.name, values.get(spec.name))
        self.events = []

    def __repr__(self):
        return f"<Expediente {self.id_}>"

    def value_of(self, name: str) -> Any:
        return getattr(self, name, None)

    def pending_fields(self) -> List[fields.FieldSpec]:
        return [f for f in fields.OFFERED_FIELDS if fields.is_empty(self.value_of(f.name))]

    def fill_pending(self, values: Dict[str, Any]) -> List[str]:
        """
        Write `values` into the fields that are still empty.

        Non-empty fields are left untouched. Returns the names actually
        written and raises ExpedienteUpdated when there is at least one.
        """
        updated = []
        for name, value in values.items():
            if name not in fields.FIELDS_BY_NAME:
                continue
            if not fields.is_empty(self.value_of(name)):
                continue
            setattr(self, name, value)
            updated.append(name)

        if updated:
            self.events.append(ExpedienteUpdated(expediente_id=self.id_, fields=list(updated)))
        return updated
