from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Iterable

from pydantic import AfterValidator, BaseModel, model_validator
from sqlalchemy.orm import Query

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Columns store naive UTC; offsets are converted, naive input is taken as UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


UtcDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]


class PartialUpdate(BaseModel):
    """PUT payload: fields may be omitted, but those in ``non_nullable`` may not be sent as null."""

    non_nullable: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_null_required_fields(self):
        nulls = [name for name in self.non_nullable if name in self.model_fields_set and getattr(self, name) is None]
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self


class Pagination(BaseModel):
    page: int
    limit: int
    total: int


def ok(data: Any = None, **extra: Any) -> dict:
    body = {"success": True, "data": data}
    body.update(extra)
    return body


def paginate(query: Query, page: int, limit: int) -> tuple[list, Pagination]:
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return rows, Pagination(page=page, limit=limit, total=total)


def serialize(schema: type[BaseModel], rows: Iterable[Any]) -> list[BaseModel]:
    return [schema.model_validate(row) for row in rows]


def paginated(schema: type[BaseModel], query: Query, page: int, limit: int) -> dict:
    rows, pagination = paginate(query, page, limit)
    return ok(serialize(schema, rows), pagination=pagination)
