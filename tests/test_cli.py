import json

import pytest
from click.testing import CliRunner

from chat_history.cli import main as cli_main
from chat_history.cli.history import build_filters
from chat_history.client import AsyncChatHistory

from fakes import TABLE, FakeGateway, make_sessions


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fake_gateway(monkeypatch):
    gateway = FakeGateway({TABLE: make_sessions(20)})
    monkeypatch.setattr(cli_main, "_get_client", lambda table_id=None: AsyncChatHistory(gateway))
    return gateway


class TestBuildFilters:

    def test_pairs_and_dates(self):
        filters = build_filters(("q=radiograf", "special_request=requested"), date_from="2024-01-01", page=2)
        assert filters.values == {"q": "radiograf", "special_request": "requested", "from": "2024-01-01"}
        assert filters.page == 2

    def test_malformed_pair(self):
        import click
        with pytest.raises(click.BadParameter):
            build_filters(("radiograf",))


class TestCommands:

    def test_tables(self, runner):
        result = runner.invoke(cli_main.main, ["tables"])
        assert result.exit_code == 0
        assert "n8n_historial" in result.output

    def test_history_json(self, runner, fake_gateway):
        result = runner.invoke(cli_main.main, ["history", "--json", "-p", "2"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["status"] == "ok"
        assert payload["page"]["total_count"] == 20
        assert len(payload["page"]["order"]) == 5

    def test_history_no_matches(self, runner, fake_gateway):
        result = runner.invoke(cli_main.main, ["history", "-f", "q=no existe"])
        assert result.exit_code == 0
        assert "No sessions match" in result.output

    def test_history_failure_exits_nonzero(self, runner, fake_gateway):
        fake_gateway.fail_when = lambda q: True
        result = runner.invoke(cli_main.main, ["history"])
        assert result.exit_code == 1
        assert "permission denied" in result.output

    def test_history_json_failure_exits_nonzero(self, runner, fake_gateway):
        fake_gateway.fail_when = lambda q: True
        result = runner.invoke(cli_main.main, ["history", "--json"])
        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["status"] == "failed"
        assert "permission denied" in payload["error"]

    def test_unknown_table(self, runner, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
        monkeypatch.delenv("TABLE_ID", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "CRITICAL")
        result = runner.invoke(cli_main.main, ["history", "-t", "nope"])
        assert result.exit_code == 1
        assert "Unknown table 'nope'" in result.output
        assert "n8n_historial" in result.output

    def test_export_writes_csv(self, runner, fake_gateway, tmp_path):
        result = runner.invoke(cli_main.main, ["export", "-f", "session_id=s01", "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        (path,) = tmp_path.glob("historial_chat_*.csv")
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "session_id,created_at,message_content"
        assert len(lines) == 1 + 20

    def test_export_nothing_to_export(self, runner, fake_gateway, tmp_path):
        result = runner.invoke(cli_main.main, ["export", "-f", "q=no existe", "-o", str(tmp_path)])
        assert result.exit_code == 0
        assert "No data to export" in result.output
        assert list(tmp_path.iterdir()) == []

    def test_stats_json(self, runner, fake_gateway):
        result = runner.invoke(cli_main.main, ["stats", "--json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["recent_sessions"][0]["session_id"] == "s019"

    def test_missing_settings(self, runner, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
        result = runner.invoke(cli_main.main, ["history"])
        assert result.exit_code == 1
        assert "SUPABASE_URL" in result.output
