"""List query compiler.

Turns raw query-string parameters into a validated ``ListQuery``: a frozen
descriptor holding typed filter variants plus sort and pagination.  Stores
consume the descriptor directly and never look at raw parameters.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, Union

from app.core.constants import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    SORT_COLUMNS,
)
from app.core.errors import validation_error
from app.models.enums import SortField, SortOrder

_INTEGER = re.compile(r"[+-]?[0-9]+")


# ---------------------------------------------------------------------------
# Filter variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ContainsFilter:
    """Case-insensitive substring match on a text column."""
    column: str
    value: str
    kind: Literal["contains"] = "contains"


@dataclass(frozen=True)
class MembershipFilter:
    """Exact, case-sensitive membership of ``value`` in an array column."""
    column: str
    value: str
    kind: Literal["membership"] = "membership"


@dataclass(frozen=True)
class RangeFilter:
    """Inclusive numeric bounds; either side may be open."""
    column: str
    minimum: int | None = None
    maximum: int | None = None
    kind: Literal["range"] = "range"


@dataclass(frozen=True)
class AnyOfFilter:
    """Matches when at least one of the nested filters matches."""
    options: tuple[ContainsFilter | MembershipFilter, ...]
    kind: Literal["any_of"] = "any_of"


Filter = Union[ContainsFilter, MembershipFilter, RangeFilter, AnyOfFilter]


@dataclass(frozen=True)
class ListQuery:
    """Normalized list request: filters are AND-ed together."""
    filters: tuple[Filter, ...] = ()
    sort: SortField = SortField.updatedAt
    order: SortOrder = SortOrder.desc
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def sort_column(self) -> str:
        return SORT_COLUMNS[self.sort.value]

    @property
    def descending(self) -> bool:
        return self.order is SortOrder.desc

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.page_size)

    def cache_key(self) -> str:
        """Canonical JSON serialization of the whole descriptor."""
        payload = {
            "filters": [_filter_to_dict(f) for f in self.filters],
            "sort": self.sort.value,
            "order": self.order.value,
            "page": self.page,
            "pageSize": self.page_size,
        }
        return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def _filter_to_dict(f: Filter) -> dict[str, Any]:
    if isinstance(f, AnyOfFilter):
        return {"kind": f.kind, "options": [_filter_to_dict(o) for o in f.options]}
    if isinstance(f, RangeFilter):
        return {"kind": f.kind, "column": f.column, "min": f.minimum, "max": f.maximum}
    return {"kind": f.kind, "column": f.column, "value": f.value}


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

def _text_param(params: Mapping[str, Any], name: str) -> str | None:
    raw = params.get(name)
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def _parse_int(raw: str) -> int | None:
    # Plain ASCII decimal only; int() would also take "1_000" and non-ASCII digits
    if _INTEGER.fullmatch(raw) is None:
        return None
    return int(raw)


def compile_list_query(params: Mapping[str, Any]) -> ListQuery:
    """Validate raw parameters and build the filter descriptor.

    Every offending field is collected before raising, so callers get one
    message per field.  Nothing is returned on failure.
    """
    errors: dict[str, list[str]] = {}

    page = DEFAULT_PAGE
    raw_page = _text_param(params, "page")
    if raw_page is not None:
        parsed = _parse_int(raw_page)
        if parsed is None or parsed < 1:
            errors["page"] = ["Page must be a positive integer"]
        else:
            page = parsed

    page_size = DEFAULT_PAGE_SIZE
    raw_page_size = _text_param(params, "pageSize")
    if raw_page_size is not None:
        parsed = _parse_int(raw_page_size)
        if parsed is None or not 1 <= parsed <= MAX_PAGE_SIZE:
            errors["pageSize"] = [f"Page size must be between 1 and {MAX_PAGE_SIZE}"]
        else:
            page_size = parsed

    sort = SortField.updatedAt
    raw_sort = _text_param(params, "sort")
    if raw_sort is not None:
        try:
            sort = SortField(raw_sort)
        except ValueError:
            allowed = ", ".join(s.value for s in SortField)
            errors["sort"] = [f"Sort must be one of: {allowed}"]

    order = SortOrder.desc
    raw_order = _text_param(params, "order")
    if raw_order is not None:
        try:
            order = SortOrder(raw_order)
        except ValueError:
            errors["order"] = ["Order must be either asc or desc"]

    bounds: dict[str, int | None] = {"minExp": None, "maxExp": None}
    labels = {"minExp": "Minimum", "maxExp": "Maximum"}
    for name in bounds:
        raw = _text_param(params, name)
        if raw is None:
            continue
        parsed = _parse_int(raw)
        if parsed is None or parsed < 0:
            errors[name] = [f"{labels[name]} experience must be a non-negative number"]
        else:
            bounds[name] = parsed

    min_exp, max_exp = bounds["minExp"], bounds["maxExp"]
    if min_exp is not None and max_exp is not None and min_exp > max_exp:
        errors["experience"] = ["minExp cannot be greater than maxExp"]

    if errors:
        raise validation_error("Invalid query parameters", errors)

    filters: list[Filter] = []

    q = _text_param(params, "q")
    if q is not None:
        filters.append(AnyOfFilter(options=(
            ContainsFilter("full_name", q),
            ContainsFilter("headline", q),
            MembershipFilter("skills", q),
        )))

    for name in ("location", "status", "availability"):
        value = _text_param(params, name)
        if value is not None:
            filters.append(ContainsFilter(name, value))

    skill = _text_param(params, "skill")
    if skill is not None:
        filters.append(MembershipFilter("skills", skill))

    if min_exp is not None or max_exp is not None:
        filters.append(RangeFilter("years_of_experience", min_exp, max_exp))

    return ListQuery(
        filters=tuple(filters),
        sort=sort,
        order=order,
        page=page,
        page_size=page_size,
    )
