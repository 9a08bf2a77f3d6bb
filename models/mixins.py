"""
SQLAlchemy mixins shared by the portfolio models.

    - CuidMixin: CUID string primary key
    - CreatedAtMixin: creation timestamp
"""
from datetime import UTC, datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from utils.generators import generate_cuid


def utcnow() -> datetime:
    return datetime.now(UTC)


class CuidMixin:
    """
    Mixin for models using CUID as primary key.

    The identifier is generated client-side on insert and never changes
    afterwards; updates replace every other column.
    """

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class CreatedAtMixin:
    """Creation timestamp set once, application-side, in UTC"""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
