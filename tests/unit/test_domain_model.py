"""Unit tests for the expediente domain model"""
from datetime import datetime, timedelta, timezone

import pytest

from expediente.domain.events import AccessTokenConsumed, ExpedienteUpdated
from expediente.domain.model import AccessToken, Expediente, LinkAlreadyUsed, LinkExpired

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_token(**kwargs):
    defaults = dict(token="tok-1", expediente_id="EXP-001", expires_at=NOW + timedelta(hours=1))
    defaults.update(kwargs)
    return AccessToken(**defaults)


class TestAccessToken:

    def test_fresh_token_is_usable(self):
        make_token().check_usable(NOW)

    def test_used_token_is_rejected(self):
        token = make_token(used_at=NOW - timedelta(minutes=5))
        with pytest.raises(LinkAlreadyUsed, match="Link already used"):
            token.check_usable(NOW)

    def test_expired_token_is_rejected(self):
        token = make_token(expires_at=NOW - timedelta(seconds=1))
        with pytest.raises(LinkExpired, match="Link expired"):
            token.check_usable(NOW)

    def test_used_wins_over_expired(self):
        token = make_token(expires_at=NOW - timedelta(days=1), used_at=NOW - timedelta(days=2))
        with pytest.raises(LinkAlreadyUsed):
            token.check_usable(NOW)

    def test_naive_expiry_is_read_as_utc(self):
        token = make_token(expires_at=datetime(2024, 5, 1, 11, 59))
        with pytest.raises(LinkExpired):
            token.check_usable(NOW)

    def test_consume_sets_used_at_and_raises_event(self):
        token = make_token()
        token.consume(NOW)

        assert token.used_at == NOW
        assert token.events == [AccessTokenConsumed(token="tok-1", expediente_id="EXP-001", used_at=NOW)]
        with pytest.raises(LinkAlreadyUsed):
            token.check_usable(NOW)


class TestExpediente:

    def test_new_expediente_has_every_offered_field_pending(self):
        expediente = Expediente("EXP-001")
        names = [f.name for f in expediente.pending_fields()]

        assert names[0] == "nif_entidad"
        assert "num_expayuda" in names
        assert "presidente_comunidad" not in names
        assert len(expediente.events) == 0

    def test_filled_and_blank_values(self):
        expediente = Expediente("EXP-001", nif_entidad="B123", provincia_="   ", cuantia_ayuda=0.0)
        names = [f.name for f in expediente.pending_fields()]

        assert "nif_entidad" not in names
        assert "cuantia_ayuda" not in names
        assert "provincia_" in names

    def test_unknown_field_is_rejected(self):
        with pytest.raises(ValueError):
            Expediente("EXP-001", not_a_column="x")

    def test_fill_pending_never_overwrites(self):
        expediente = Expediente("EXP-001", nif_entidad="B123", ayuda_bisrehab=False)

        updated = expediente.fill_pending({
            "nif_entidad": "OTHER",
            "ayuda_bisrehab": True,
            "ayuda_rehab": "Plan X",
        })

        assert updated == ["ayuda_rehab"]
        assert expediente.nif_entidad == "B123"
        assert expediente.ayuda_bisrehab is False
        assert expediente.ayuda_rehab == "Plan X"
        assert expediente.events == [ExpedienteUpdated(expediente_id="EXP-001", fields=["ayuda_rehab"])]

    def test_fill_pending_writes_over_blank_strings(self):
        expediente = Expediente("EXP-001", provincia_="  ")
        assert expediente.fill_pending({"provincia_": "Madrid"}) == ["provincia_"]
        assert expediente.provincia_ == "Madrid"

    def test_nothing_written_raises_no_event(self):
        expediente = Expediente("EXP-001", nif_entidad="B123")
        assert expediente.fill_pending({"nif_entidad": "X"}) == []
        assert expediente.events == []
