from datetime import timezone

import pytest

from chat_history.export import ExportAssembler
from chat_history.paginator import SessionPaginator
from chat_history.registry import TableRegistry
from chat_history.resolver import SessionResolver
from chat_history.tables import N8N_HISTORIAL

from fakes import TABLE, FakeGateway


@pytest.fixture
def config():
    return N8N_HISTORIAL


@pytest.fixture
def gateway():
    return FakeGateway({TABLE: []})


@pytest.fixture
def resolver(gateway):
    return SessionResolver(gateway, tz=timezone.utc)


@pytest.fixture
def paginator(gateway):
    return SessionPaginator(gateway)


@pytest.fixture
def exporter(gateway, resolver):
    return ExportAssembler(gateway, resolver, chunk_size=4)


@pytest.fixture
def registry():
    return TableRegistry.default()
