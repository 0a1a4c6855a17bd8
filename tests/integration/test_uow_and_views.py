"""
Integration tests against SQLite - unit of work, repositories and views.

Tests verify that:
1. Expedientes and tokens round trip through the imperative mappings
2. The pending fields view validates links without consuming them
3. Submitting through the message bus persists values and the used token
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from expediente import views
from expediente.domain.commands import IssueAccessToken, SubmitPendingFields
from expediente.domain.model import ExpedienteNotFound, InvalidToken, LinkAlreadyUsed, LinkExpired
from expediente.service_layer import messagebus


def test_expediente_round_trip(add_expediente, uow):
    add_expediente("EXP-001", nif_entidad="B123", cuantia_ayuda=10.5, ayuda_bisrehab=True, año_ayuda="2023")

    with uow:
        expediente = uow.expedientes.get("EXP-001")
        assert expediente.nif_entidad == "B123"
        assert expediente.cuantia_ayuda == 10.5
        assert expediente.ayuda_bisrehab is True
        assert expediente.value_of("año_ayuda") == "2023"
        assert expediente.provincia_ is None
        assert expediente.events == []


def test_rollback_is_the_default(add_expediente, uow, load_expediente):
    add_expediente("EXP-001")

    with uow:
        expediente = uow.expedientes.get("EXP-001")
        expediente.fill_pending({"nif_entidad": "B123"})

    assert load_expediente("EXP-001")["nif_entidad"] is None


def test_pending_fields_view(add_expediente, add_token, uow, load_token):
    add_expediente("EXP-001", nif_entidad="B123", comunidad_autonoma="  ")
    add_token("tok-valid", "EXP-001")

    result = views.get_pending_fields("tok-valid", uow)

    assert result["expediente_id"] == "EXP-001"
    field_names = [f["name"] for f in result["fields"]]
    assert "nif_entidad" not in field_names
    assert field_names[0] == "comunidad_autonoma"
    assert result["fields"][0] == {"name": "comunidad_autonoma", "label": "Comunidad autónoma", "type": "text"}
    assert load_token("tok-valid").used_at is None


def test_pending_fields_view_errors(add_expediente, add_token, uow):
    add_expediente("EXP-001")
    add_token("tok-used", "EXP-001", used_at=datetime.now(timezone.utc) - timedelta(hours=1))
    add_token("tok-old", "EXP-001", expires_at=datetime.now(timezone.utc) - timedelta(hours=1))
    add_token("tok-orphan", "EXP-404")

    with pytest.raises(InvalidToken):
        views.get_pending_fields("missing", uow)
    with pytest.raises(LinkAlreadyUsed):
        views.get_pending_fields("tok-used", uow)
    with pytest.raises(LinkExpired):
        views.get_pending_fields("tok-old", uow)
    with pytest.raises(ExpedienteNotFound):
        views.get_pending_fields("tok-orphan", uow)


def test_submit_persists_values_and_used_token(add_expediente, add_token, uow, load_expediente, load_token):
    add_expediente("EXP-001", nif_entidad="B123")
    add_token("tok-valid", "EXP-001")

    cmd = SubmitPendingFields(
        token="tok-valid",
        data={"nif_entidad": "OTHER", "ayuda_rehab": "Plan X", "cuantia_ayuda": "1.000,50"},
    )
    [updated] = messagebus.handle(cmd, uow)

    assert updated == ["ayuda_rehab", "cuantia_ayuda"]
    stored = load_expediente("EXP-001")
    assert stored["nif_entidad"] == "B123"
    assert stored["ayuda_rehab"] == "Plan X"
    assert stored["cuantia_ayuda"] == 1000.5
    assert load_token("tok-valid").used_at is not None


def test_issued_token_is_stored(add_expediente, uow):
    add_expediente("EXP-001")

    [token] = messagebus.handle(IssueAccessToken(expediente_id="EXP-001", ttl_hours=2), uow)

    with uow:
        row = uow.session.execute(
            text("SELECT expediente_id, used_at FROM expediente_tokens WHERE token = :token"),
            dict(token=token),
        ).fetchone()
    assert row[0] == "EXP-001"
    assert row[1] is None

    assert views.get_pending_fields(token, uow)["expediente_id"] == "EXP-001"
