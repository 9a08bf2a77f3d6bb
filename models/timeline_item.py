from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base
from core.enums import AttachmentKind
from models.mixins import CreatedAtMixin, CuidMixin


class TimelineItem(CuidMixin, CreatedAtMixin, Base):
    """
    One dated entry on the portfolio timeline.

    `date` carries a time component as submitted, but lookups and cache keys
    only ever use its calendar date.
    """

    __tablename__ = "timeline_item"

    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False, default="")

    # Optional attachment stored in the blob store
    file_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    file_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    file_type: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    __table_args__ = (
        CheckConstraint(
            f"file_type IS NULL OR file_type IN {tuple(AttachmentKind.values())}",
            name="timeline_item_file_type_check",
        ),
    )
