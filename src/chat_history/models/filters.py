"""
Filter Set — current filter values for a history view, plus the 1-based page.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ALL = "all"
PRESET_DAYS = {"7d": 7, "30d": 30, "90d": 90}


def is_active(value: Any) -> bool:
    """Empty values and the `all` sentinel never become constraints."""
    return value is not None and value != "" and value != ALL


def preset_range(preset: str, today: Optional[date] = None) -> tuple[str, str]:
    """Return (from, to) ISO dates for a quick-range preset ending today."""
    if preset not in PRESET_DAYS:
        raise ValueError(f"Unknown preset {preset!r}; expected one of {', '.join(PRESET_DAYS)}")
    end = today or date.today()
    start = end - timedelta(days=PRESET_DAYS[preset])
    return start.isoformat(), end.isoformat()


class FilterSet(BaseModel):
    """Immutable snapshot; every `with_*` returns a new set."""

    model_config = ConfigDict(frozen=True)

    values: dict[str, str] = Field(default_factory=dict)
    page: int = 1

    @field_validator("page")
    @classmethod
    def _positive_page(cls, v: int) -> int:
        if v < 1:
            raise ValueError("page is 1-based")
        return v

    def get(self, filter_id: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(filter_id, default)

    def active(self, filter_id: str) -> Optional[str]:
        value = self.values.get(filter_id)
        return value if is_active(value) else None

    def with_filter(self, filter_id: str, value: Optional[str]) -> FilterSet:
        """Set one filter value. Changing any filter sends the view back to page 1."""
        if filter_id == "page":
            return self.with_page(int(value or 1))
        values = dict(self.values)
        if value is None or value == "":
            values.pop(filter_id, None)
        else:
            values[filter_id] = value
        return FilterSet(values=values, page=1)

    def with_filters(self, updates: Mapping[str, Optional[str]]) -> FilterSet:
        result = self
        for filter_id, value in updates.items():
            result = result.with_filter(filter_id, value)
        return result

    def with_page(self, page: int) -> FilterSet:
        return FilterSet(values=dict(self.values), page=page)

    def with_preset(self, preset: str, today: Optional[date] = None) -> FilterSet:
        start, end = preset_range(preset, today)
        return self.with_filters({"from": start, "to": end})

    @classmethod
    def from_query_params(cls, params: Mapping[str, str]) -> FilterSet:
        values = {k: v for k, v in params.items() if k != "page" and v != ""}
        try:
            page = max(int(params.get("page") or 1), 1)
        except ValueError:
            page = 1
        return cls(values=values, page=page)

    def to_query_params(self) -> dict[str, str]:
        params = {k: v for k, v in self.values.items() if v}
        if self.page != 1:
            params["page"] = str(self.page)
        return params
