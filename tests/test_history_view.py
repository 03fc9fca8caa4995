import asyncio
from datetime import date

import pytest

from chat_history.history import HistoryView, ResultStatus
from chat_history.registry import TableRegistry

from fakes import TABLE, make_sessions


@pytest.fixture
def view(gateway, registry, resolver, paginator, exporter):
    gateway.tables[TABLE] = make_sessions(20)
    return HistoryView(registry, resolver, paginator, exporter)


def _searches(query, needle):
    return any(c.op == "ilike" and needle in str(c.value) for c in query.constraints)


class TestRefresh:

    @pytest.mark.asyncio
    async def test_first_page(self, view):
        result = await view.refresh()
        assert result.status == ResultStatus.OK
        assert result.page.total_count == 20
        assert len(result.page.order) == 15
        assert view.state is result

    @pytest.mark.asyncio
    async def test_out_of_range_page_is_empty(self, view):
        view.set_page(9)
        result = await view.refresh()
        assert result.status == ResultStatus.EMPTY
        assert result.page.total_count == 20

    @pytest.mark.asyncio
    async def test_no_matches_is_empty(self, view):
        view.set_filter("q", "no existe")
        result = await view.refresh()
        assert result.status == ResultStatus.EMPTY
        assert result.page.total_count == 0

    @pytest.mark.asyncio
    async def test_no_configuration_is_inactive(self, gateway, resolver, paginator, exporter):
        view = HistoryView(TableRegistry([]), resolver, paginator, exporter)
        result = await view.refresh()
        assert result.status == ResultStatus.INACTIVE
        assert gateway.queries == []
        assert await view.export() is None

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_page(self, view, gateway):
        ok = await view.refresh()
        gateway.fail_when = lambda q: True
        view.set_page(2)
        failed = await view.refresh()

        assert failed.status == ResultStatus.FAILED
        assert "permission denied" in failed.error
        assert failed.page == ok.page
        assert view.state is failed

    @pytest.mark.asyncio
    async def test_malformed_rows_are_reported_as_failed(self, view, gateway):
        gateway.tables[TABLE].append(
            {"id": 999, "session_id": "broken", "created_at": "31/02/2024", "message": {"text": "hola"}}
        )
        result = await view.refresh()
        assert result.status == ResultStatus.FAILED
        assert "Malformed row" in result.error

    @pytest.mark.asyncio
    async def test_filter_change_resets_page(self, view):
        view.set_page(2)
        view.set_filter("q", "sesion")
        assert view.filters.page == 1
        assert view.query_params() == {"q": "sesion"}


class TestLastRequestWins:

    @pytest.mark.asyncio
    async def test_slow_earlier_refresh_is_discarded(self, view, gateway):
        gateway.delay_for = lambda q: 0.05 if _searches(q, "sesion 1") else 0

        view.set_filter("q", "sesion 1")
        slow = asyncio.create_task(view.refresh())
        await asyncio.sleep(0)

        view.set_filter("q", "sesion 2")
        latest = await view.refresh()
        earlier = await slow

        assert latest.generation == 2
        assert not latest.stale
        assert earlier.generation == 1
        assert earlier.stale
        assert view.state is latest
        assert view.state.filters.get("q") == "sesion 2"

    @pytest.mark.asyncio
    async def test_sequential_refreshes_all_apply(self, view):
        first = await view.refresh()
        second = await view.refresh()
        assert not first.stale and not second.stale
        assert view.generation == 2


class TestNavigation:

    def test_query_params_round_trip(self, view):
        view.load_query_params({"q": "rx", "page": "3"})
        assert view.filters.page == 3
        assert view.query_params() == {"q": "rx", "page": "3"}

    def test_preset(self, view):
        view.apply_preset("30d", today=date(2024, 3, 31))
        assert view.filters.values == {"from": "2024-03-01", "to": "2024-03-31"}

    @pytest.mark.asyncio
    async def test_export_uses_current_filters(self, view):
        view.set_filter("session_id", "s01")
        export = await view.export(on=date(2024, 4, 1))
        # s010 .. s019
        assert export.session_count == 10
        assert export.filename == "historial_chat_2024-04-01.csv"
