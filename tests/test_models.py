from datetime import datetime, timezone

import pytest

from chat_history.errors import ConfigurationMissingError
from chat_history.models.message import Message, extract_text, parse_timestamp, split_exchange
from chat_history.models.session import Session
from chat_history.models.table import FilterDef
from chat_history.registry import TableRegistry
from chat_history.tables import N8N_HISTORIAL, has_rx_request, render_message


class TestMessage:

    def test_extract_text(self):
        assert extract_text({"type": "human", "text": "hola"}) == "hola"
        assert extract_text("plano") == "plano"
        assert extract_text(None) == ""
        assert extract_text(42) == "42"
        assert extract_text({"type": "tool"}) == '{"type": "tool"}'

    def test_naive_timestamps_are_utc(self):
        assert parse_timestamp("2024-01-01T10:00:00") == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
        assert parse_timestamp("2024-01-01T10:00:00Z") == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)

    def test_extra_columns_are_kept(self):
        message = Message.model_validate(
            {"id": 7, "session_id": "a", "created_at": "2024-01-01T10:00:00Z", "message": "x", "channel": "whatsapp"}
        )
        assert message.id == 7
        assert message.extra == {"channel": "whatsapp"}
        assert message.text == "x"

    def test_split_exchange(self):
        assert split_exchange("Humano: necesito cita IA: claro, ¿qué día?") == ("necesito cita", "claro, ¿qué día?")
        assert split_exchange("usuario: hola\nIA\nbuenos días") == ("hola", "buenos días")
        assert split_exchange("solo texto") is None
        assert split_exchange("Humano: sin respuesta") is None


class TestSession:

    def _message(self, created_at, text="hola"):
        return Message(session_id="a", created_at=created_at, message={"text": text})

    def test_last_activity_follows_members(self):
        session = Session(session_id="a", messages=[
            self._message("2024-01-01T10:00:00Z"),
            self._message("2024-01-01T12:00:00Z"),
        ])
        assert session.last_activity == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
        assert session.first.created_at == "2024-01-01T10:00:00Z"

    def test_empty_session(self):
        session = Session(session_id="a")
        assert session.last_activity is None
        assert session.first is None
        assert not session.classify(has_rx_request)

    def test_classify(self):
        session = Session(session_id="a", messages=[
            self._message("2024-01-01T10:00:00Z"),
            self._message("2024-01-01T10:01:00Z", "una Radiografía panorámica"),
        ])
        assert session.classify(has_rx_request)


class TestTableConfig:

    def test_columns(self, config):
        assert config.primary_column.id == "message"
        assert [c.id for c in config.secondary_columns] == ["session_id", "created_at", "rx_request"]

    def test_special_filter(self, config):
        assert config.special_filter.id == "special_request"
        assert config.filter("q").kind == "text"
        assert config.filter("missing") is None

    def test_two_selects_disable_special_filter(self, config):
        other = FilterDef(id="channel", label="Canal", kind="select")
        assert config.model_copy(update={"filters": config.filters + [other]}).special_filter is None

    def test_render_message(self):
        assert render_message(None) == "(no message)"
        assert render_message({"text": "Humano: hola IA: buenas"}) == "Usuario: hola\nIA: buenas"
        assert render_message("linea\\nsiguiente") == "linea\nsiguiente"

    def test_display_cells(self, config):
        first = Message(session_id="abcdef123456", created_at="2024-01-01T10:00:00Z", message={"text": "hola"})
        cells = {c.id: c.display(first, [first]) for c in config.columns}
        assert cells["message"] == "hola"
        assert cells["session_id"] == "...123456"
        assert cells["rx_request"] == "✘"


class TestRegistry:

    def test_default_selects_first(self, registry):
        assert registry.current is N8N_HISTORIAL
        assert registry.ids() == ["n8n_historial"]
        assert "n8n_historial" in registry
        assert len(registry) == 1

    def test_unknown_table(self, registry):
        with pytest.raises(ConfigurationMissingError) as exc:
            registry.select("nope")
        assert "n8n_historial" in str(exc.value)
        assert registry.current is N8N_HISTORIAL

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError):
            TableRegistry([N8N_HISTORIAL, N8N_HISTORIAL])

    def test_empty_registry_has_no_current(self):
        assert TableRegistry([]).current is None
