# sevadaan/models/common.py

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Type

from sqlalchemy import Column, DateTime
from sqlalchemy import Enum as SAEnum


def utcnow() -> datetime:
    # Stored as naive UTC so SQLite and Postgres compare the same way
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Offset-aware input (e.g. "...Z" from a browser) becomes naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def enum_type(enum_cls: Type[Enum], name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
    )


def enum_column(enum_cls: Type[Enum], name: str, **kwargs) -> Column:
    return Column(enum_type(enum_cls, name), nullable=False, **kwargs)


def created_column() -> Column:
    return Column(DateTime, nullable=False, default=utcnow)


def updated_column() -> Column:
    return Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
