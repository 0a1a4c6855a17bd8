import logging
from sqlalchemy import (
    Table,
    Column,
    String,
    Text,
    Float,
    Boolean,
    DateTime,
    ForeignKey,
    event,
)
from sqlalchemy.orm import registry, class_mapper
from sqlalchemy.orm.exc import UnmappedClassError

from expediente.domain import fields, model


logger = logging.getLogger(__name__)

mapper_registry = registry()
metadata = mapper_registry.metadata


def _column_for(spec: fields.FieldSpec) -> Column:
    if spec.coercion == fields.NUMBER:
        return Column(spec.name, Float)
    if spec.coercion == fields.BOOLEAN:
        return Column(spec.name, Boolean)
    if spec.type == "textarea":
        return Column(spec.name, Text)
    return Column(spec.name, String(255))


expedientes = Table(
    "expedientes_ae",
    metadata,
    Column("id_", String(255), primary_key=True),
    *[_column_for(spec) for spec in fields.FIELDS],
)

expediente_tokens = Table(
    "expediente_tokens",
    metadata,
    Column("token", String(255), primary_key=True),
    Column("expediente_id", String(255), ForeignKey("expedientes_ae.id_"), nullable=False),
    Column("expires_at", DateTime(timezone=True), nullable=False),
    Column("used_at", DateTime(timezone=True)),
)


def start_mappers():
    try:
        class_mapper(model.Expediente)
        return
    except UnmappedClassError:
        pass

    logger.info("Starting mappers")
    mapper_registry.map_imperatively(model.Expediente, expedientes)
    mapper_registry.map_imperatively(model.AccessToken, expediente_tokens)


@event.listens_for(model.Expediente, "load")
def receive_expediente_load(expediente, _):
    expediente.events = []


@event.listens_for(model.AccessToken, "load")
def receive_token_load(token, _):
    token.events = []
