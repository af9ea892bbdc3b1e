"""Query parameters for list and search requests."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from gbtool.utils.datetime import format_api_date


class DateRange(BaseModel):
    """Inclusive ``start|end`` range filter."""

    start: datetime
    end: datetime


FilterValue = str | int | bool | datetime | DateRange


class Query(BaseModel):
    """Field selection, sorting, filtering and paging for a request.

    Example:
        >>> Query(fields=["id", "name"], sort="publish_date",
        ...       filters={"video_show": 3}).to_params()
        {'format': 'json', 'field_list': 'id,name', 'sort': 'publish_date:asc', 'filter': 'video_show:3'}
    """

    model_config = ConfigDict(frozen=True)

    fields: list[str] | None = None
    sort: str | None = None
    direction: Literal["asc", "desc"] = "asc"
    filters: dict[str, FilterValue] = Field(default_factory=dict)
    resources: list[str] | None = None
    limit: int | None = None
    offset: int | None = None
    page: int | None = None

    def with_filters(self, **filters: FilterValue) -> "Query":
        """Copy with additional filters; later values win."""
        return self.model_copy(update={"filters": {**self.filters, **filters}})

    def to_params(self) -> dict[str, str]:
        """Encode as API query parameters."""
        params = {"format": "json"}
        if self.fields:
            params["field_list"] = ",".join(self.fields)
        if self.sort:
            params["sort"] = f"{self.sort}:{self.direction}"
        if self.resources:
            params["resources"] = ",".join(self.resources)
        if self.filters:
            params["filter"] = ",".join(
                f"{field}:{encode_value(value)}" for field, value in self.filters.items()
            )
        for name in ("limit", "offset", "page"):
            value = getattr(self, name)
            if value is not None:
                params[name] = str(value)
        return params


def encode_value(value: FilterValue) -> str:
    """Encode one filter value."""
    if isinstance(value, DateRange):
        return f"{format_api_date(value.start)}|{format_api_date(value.end)}"
    if isinstance(value, datetime):
        return format_api_date(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
