"""
Built-in table configurations.
"""

from typing import Any, Optional

from chat_history.models.message import Message, extract_text, parse_timestamp, split_exchange
from chat_history.models.table import (
    ColumnDef,
    FilterDef,
    FilterOption,
    SessionAnalysis,
    StatDef,
    TableConfig,
)

RX_MATCH = "radiograf"


def has_rx_request(messages: Optional[list[Message]]) -> bool:
    """True when any message in the session asks about an X-ray."""
    if not messages:
        return False
    return any(RX_MATCH in m.text.lower() for m in messages)


def render_message(payload: Any) -> str:
    if payload is None or payload == "":
        return "(no message)"
    text = extract_text(payload)
    exchange = split_exchange(text)
    if exchange is None:
        return text.replace("\\n", "\n")
    user, ai = exchange
    return f"Usuario: {user}\nIA: {ai}".replace("\\n", "\n")


def _short_id(value: Any) -> str:
    return f"...{str(value)[-6:]}"


def _local_datetime(value: Any) -> str:
    return parse_timestamp(value).astimezone().strftime("%d/%m/%Y, %H:%M:%S")


def _last_message_date(data: list[Message], _sessions: dict[str, list[Message]]) -> str:
    if not data:
        return "N/A"
    latest = max(m.timestamp for m in data)
    return latest.astimezone().strftime("%d/%m/%Y")


N8N_HISTORIAL = TableConfig(
    id="n8n_historial",
    name="Historial de Interacción Chatbot Clínica Dental Yany",
    table_name="n8n_historial",
    columns=[
        ColumnDef(id="message", header="Mensaje", accessor=lambda row, _: row.message,
                  render=render_message, is_primary=True),
        ColumnDef(id="session_id", header="ID Sesión", accessor=lambda row, _: row.session_id, render=_short_id),
        ColumnDef(id="created_at", header="Fecha", accessor=lambda row, _: row.created_at, render=_local_datetime),
        ColumnDef(id="rx_request", header="Solicitud RX", accessor=lambda _, msgs: has_rx_request(msgs),
                  render=lambda v: "✔" if v else "✘"),
    ],
    filters=[
        FilterDef(id="q", label="Buscar en mensajes...", kind="text"),
        FilterDef(id="session_id", label="Filtrar por ID de Sesión...", kind="text"),
        FilterDef(id="from", label="Desde", kind="date"),
        FilterDef(id="to", label="Hasta", kind="date"),
        FilterDef(
            id="special_request",
            label="Solicitud RX",
            kind="select",
            options=[
                FilterOption(value="requested", label="Solicitadas"),
                FilterOption(value="not_requested", label="No Solicitadas"),
            ],
            db_column="message->>text",
            db_column_type="text_match",
            db_match_string=RX_MATCH,
        ),
    ],
    stats=[
        StatDef(id="totalMessages", title="Mensajes Totales", get_value=lambda data, _: len(data)),
        StatDef(id="totalSessions", title="Sesiones Totales", get_value=lambda _, sessions: len(sessions)),
        StatDef(id="lastMessage", title="Último Mensaje", get_value=_last_message_date),
    ],
    analytics=SessionAnalysis(
        legend={"positive": "Con Solicitud RX", "negative": "Sin Solicitud RX"},
        colors={"positive": "#10B981", "negative": "#3B82F6"},
        is_positive=has_rx_request,
        filter_column="message->>text",
        filter_type="text_match",
        filter_match_string=RX_MATCH,
    ),
)

BUILTIN_TABLES: list[TableConfig] = [N8N_HISTORIAL]
