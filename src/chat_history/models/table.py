"""
Table configuration models — what a history table looks like and how to filter it.
"""

from typing import Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from chat_history.models.message import Message

FilterKind = Literal["text", "date", "select"]
MatchStrategy = Literal["boolean", "text_match"]

Classifier = Callable[[list[Message]], bool]
StatGetter = Callable[[list[Message], dict[str, list[Message]]], Union[str, int]]


class FilterOption(BaseModel):
    value: str
    label: str


class FilterDef(BaseModel):
    id: str
    label: str
    kind: FilterKind
    options: list[FilterOption] = Field(default_factory=list)
    # select kind only: how to evaluate the filter on the backend
    db_column: Optional[str] = None
    db_column_type: Optional[MatchStrategy] = None
    db_match_string: Optional[str] = None


class ColumnDef(BaseModel):
    """A display column. `accessor` reads a value from the first message of a session."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    header: str
    accessor: Callable[[Message, list[Message]], Any]
    render: Optional[Callable[[Any], str]] = None
    is_primary: bool = False

    def display(self, first: Message, session_messages: list[Message]) -> str:
        value = self.accessor(first, session_messages)
        return self.render(value) if self.render else ("" if value is None else str(value))


class StatDef(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    title: str
    get_value: StatGetter


class SessionAnalysis(BaseModel):
    """Session classifier plus its server-side equivalent and chart metadata."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    legend: dict[str, str]  # positive / negative
    colors: dict[str, str]
    is_positive: Classifier
    filter_column: str
    filter_type: MatchStrategy
    filter_match_string: Optional[str] = None


class TableConfig(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    name: str
    table_name: str
    row_key: str = "id"
    columns: list[ColumnDef]
    filters: list[FilterDef]
    stats: list[StatDef] = Field(default_factory=list)
    analytics: SessionAnalysis

    @property
    def primary_column(self) -> ColumnDef:
        return next((c for c in self.columns if c.is_primary), self.columns[0])

    @property
    def secondary_columns(self) -> list[ColumnDef]:
        primary = self.primary_column
        return [c for c in self.columns if c is not primary]

    @property
    def special_filter(self) -> Optional[FilterDef]:
        """The select-kind filter, when exactly one is declared."""
        selects = [f for f in self.filters if f.kind == "select"]
        return selects[0] if len(selects) == 1 else None

    def filter(self, filter_id: str) -> Optional[FilterDef]:
        return next((f for f in self.filters if f.id == filter_id), None)
