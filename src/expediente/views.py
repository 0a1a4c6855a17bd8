"""
Views for read operations - separate from the command/write path.

The pending fields view has no side effects: it validates the link and reads
the expediente, it never consumes the token.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from expediente.service_layer.handlers import load_link
from expediente.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


def get_pending_fields(token: str, uow: AbstractUnitOfWork, now: datetime = None) -> Dict[str, Any]:
    """
    Get the offered fields that are still empty for the expediente behind a link.

    Returns:
        - expediente_id: id of the expediente
        - fields: list of {name, label, type}, in catalog order
    """
    now = now or datetime.now(timezone.utc)

    with uow:
        _, expediente = load_link(uow, token, now)
        pending = [spec.as_dict() for spec in expediente.pending_fields()]
        expediente_id = expediente.id_

    logger.info(f"Expediente {expediente_id} has {len(pending)} pending fields")
    return {"expediente_id": expediente_id, "fields": pending}
