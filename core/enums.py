from enum import Enum


class AttachmentKind(str, Enum):
    """Kind of file attached to a timeline item"""
    IMAGE = "image"
    TEXT = "text"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [kind.value for kind in cls]


class CacheNamespace(str, Enum):
    """Cache key namespaces, one per cached query shape"""
    TIMELINE_ALL = "timeline:all"
    TIMELINE_BY_DATE = "timeline:date"
    MESSAGES_ALL = "messages:all"
    MESSAGE_STATS = "messages:stats"
