"""``orderBy`` support for list endpoints."""

from __future__ import annotations

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from hoteltax.core.database import Base

DIRECTIONS = {"asc": asc, "desc": desc}


def apply_order_by(
    query: Query,  # type: ignore[type-arg]
    model: type[Base],
    order_by: str | None,
    default_field: str = "created_at",
    default_direction: str = "desc",
) -> Query:  # type: ignore[type-arg]
    """Order ``query`` by a ``"column:direction"`` string such as ``"last_name:asc"``.

    Only real table columns are sortable; anything else falls back to
    ``default_field``. A missing or unknown direction means ascending. The
    primary key is appended so that paging is stable between requests.
    """
    columns = model.__table__.columns
    field, direction = default_field, default_direction
    if order_by:
        requested, _, requested_direction = order_by.partition(":")
        if requested in columns:
            field = requested
            direction = requested_direction if requested_direction in DIRECTIONS else "asc"

    order = DIRECTIONS[direction]
    return query.order_by(order(columns[field]), order(model.id))
