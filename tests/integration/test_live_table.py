"""
Integration tests against a real hosted history table.

Requires environment variables (or a .env file):
  SUPABASE_URL       — project URL
  SUPABASE_ANON_KEY  — anon key with read access to the history table
  TABLE_ID           — (optional) table configuration id

Run: CHAT_HISTORY_INTEGRATION=1 pytest tests/integration/ -v
"""

import csv
import io
import os

import pytest

from chat_history import AsyncChatHistory, FilterSet, GatewayError
from chat_history.config import load_settings

SKIP = not os.environ.get("CHAT_HISTORY_INTEGRATION")

pytestmark = pytest.mark.skipif(SKIP, reason="CHAT_HISTORY_INTEGRATION not set")


def make_client() -> AsyncChatHistory:
    return AsyncChatHistory.from_settings(load_settings())


class TestConnection:

    @pytest.mark.asyncio
    async def test_reads_rows(self):
        client = make_client()
        rows = await client.gateway.select(client.current.table_name, "session_id,created_at").execute()
        await client.close()
        assert isinstance(rows, list)

    @pytest.mark.asyncio
    async def test_rejects_invalid_key(self):
        settings = load_settings(SUPABASE_ANON_KEY="invalid")
        client = AsyncChatHistory.from_settings(settings)
        with pytest.raises(GatewayError):
            await client.gateway.select(client.current.table_name).execute()
        await client.close()


class TestHistory:

    @pytest.mark.asyncio
    async def test_first_page_is_ordered(self):
        client = make_client()
        resolved = await client.resolve(FilterSet())
        page = await client.page(FilterSet())
        await client.close()

        assert page.total_count == resolved.total_count
        assert page.order == resolved.session_ids[:15]
        stamps = [resolved.last_activity[sid] for sid in resolved.session_ids]
        assert stamps == sorted(stamps, reverse=True)

    @pytest.mark.asyncio
    async def test_special_filter_partitions_sessions(self):
        client = make_client()
        special = client.current.special_filter
        if special is None:
            await client.close()
            pytest.skip("current table has no select filter")
        everything = await client.resolve(FilterSet())
        requested = await client.resolve(FilterSet(values={special.id: "requested"}))
        not_requested = await client.resolve(FilterSet(values={special.id: "not_requested"}))
        await client.close()

        assert set(requested.session_ids).isdisjoint(not_requested.session_ids)
        assert set(requested.session_ids) | set(not_requested.session_ids) == set(everything.session_ids)


class TestExport:

    @pytest.mark.asyncio
    async def test_export_matches_resolved_sessions(self):
        client = make_client()
        filters = FilterSet().with_preset("7d")
        resolved = await client.resolve(filters)
        if not resolved.session_ids:
            await client.close()
            pytest.skip("no sessions in the last 7 days")
        export = await client.export(filters)
        await client.close()

        rows = list(csv.reader(io.StringIO(export.content.decode("utf-8"))))
        assert rows[0] == ["session_id", "created_at", "message_content"]
        assert {r[0] for r in rows[1:]} == set(resolved.session_ids)
