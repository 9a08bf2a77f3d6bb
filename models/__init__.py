from models.mixins import CreatedAtMixin, CuidMixin
from models.timeline_item import TimelineItem
from models.visitor_message import VisitorMessage

__all__ = [
    # Models
    "TimelineItem",
    "VisitorMessage",
    # Mixins
    "CuidMixin",
    "CreatedAtMixin",
]
