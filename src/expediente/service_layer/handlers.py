import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

from expediente.domain import fields
from expediente.domain.commands import IssueAccessToken, SubmitPendingFields
from expediente.domain.events import AccessTokenConsumed, AccessTokenIssued, ExpedienteUpdated
from expediente.domain.model import (
    AccessToken,
    Expediente,
    ExpedienteNotFound,
    InvalidToken,
)
from expediente.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


def load_link(uow: AbstractUnitOfWork, token: str, now: datetime) -> Tuple[AccessToken, Expediente]:
    """
    Resolve a form link to its token and expediente.

    Must be called inside the unit of work context.

    Raises:
        InvalidToken: no such token
        LinkAlreadyUsed / LinkExpired: token can no longer be used
        ExpedienteNotFound: token points to a missing expediente
    """
    access_token = uow.tokens.get(token)
    if access_token is None:
        raise InvalidToken("Invalid token")
    access_token.check_usable(now)

    expediente = uow.expedientes.get(access_token.expediente_id)
    if expediente is None:
        raise ExpedienteNotFound("Expediente not found")
    return access_token, expediente


def submit_pending_fields(
    command: SubmitPendingFields,
    uow: AbstractUnitOfWork
) -> List[str]:
    """
    Write submitted values into the still empty fields and invalidate the link.

    Flow:
    1. Validate the token and load its expediente
    2. Filter the data to accepted fields and coerce values
    3. Commit the values for fields that are still empty (if any)
    4. Mark the token used and commit, even when nothing was written

    Returns:
        Names of the fields actually written
    """
    submitted_at = command.submitted_at or datetime.now(timezone.utc)
    logger.info(f"Processing SubmitPendingFields command for token {command.token[:8]}...")

    with uow:
        access_token, expediente = load_link(uow, command.token, submitted_at)

        cleaned = fields.clean_submission(command.data)
        updated = expediente.fill_pending(cleaned)
        logger.info(
            f"Expediente {expediente.id_}: {len(cleaned)} usable values, {len(updated)} pending fields filled"
        )

        if updated:
            uow.commit()
            logger.info(f"Committed {updated} for expediente {access_token.expediente_id}")

        access_token.consume(submitted_at)
        uow.commit()

    return updated


def issue_access_token(
    command: IssueAccessToken,
    uow: AbstractUnitOfWork
) -> str:
    """Create a new single use link for an existing expediente and return its token."""
    issued_at = command.issued_at or datetime.now(timezone.utc)
    logger.info(f"Processing IssueAccessToken command for expediente {command.expediente_id}")

    with uow:
        if uow.expedientes.get(command.expediente_id) is None:
            raise ExpedienteNotFound(f"Expediente {command.expediente_id} not found")

        access_token = AccessToken(
            token=secrets.token_urlsafe(32),
            expediente_id=command.expediente_id,
            expires_at=issued_at + timedelta(hours=command.ttl_hours),
        )
        access_token.events.append(
            AccessTokenIssued(
                token=access_token.token,
                expediente_id=access_token.expediente_id,
                expires_at=access_token.expires_at,
            )
        )
        token = uow.tokens.add(access_token)
        uow.commit()

    return token


def log_expediente_updated(event: ExpedienteUpdated, uow: AbstractUnitOfWork):
    logger.info(f"Expediente {event.expediente_id} updated: {', '.join(event.fields)}")


def log_token_issued(event: AccessTokenIssued, uow: AbstractUnitOfWork):
    logger.info(
        f"Link issued for expediente {event.expediente_id}, valid until {event.expires_at.isoformat()}"
    )


def log_token_consumed(event: AccessTokenConsumed, uow: AbstractUnitOfWork):
    logger.info(f"Link for expediente {event.expediente_id} used at {event.used_at.isoformat()}")
