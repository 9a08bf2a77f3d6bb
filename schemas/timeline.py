from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.enums import AttachmentKind
from schemas.validators import ensure_utc, strip_required


class Attachment(BaseModel):
    """Reference to a file uploaded to the blob store"""

    url: str
    name: str
    kind: AttachmentKind

    model_config = ConfigDict(frozen=True)


class TimelineItemCreate(BaseModel):
    """Schema for creating or fully replacing a timeline item"""

    date: datetime
    title: str = Field(..., max_length=200)
    description: str = Field(default="", max_length=1000)
    attachment: Optional[Attachment] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return strip_required(v, "Title")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return v.strip()

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class TimelineItemResponse(BaseModel):
    """
    Timeline item as returned to clients and as held in the response cache.

    Frozen so a cached instance can be shared between requests safely.
    """

    id: str
    date: datetime
    title: str
    description: str
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[AttachmentKind] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @field_validator("date", "created_at")
    @classmethod
    def validate_timestamps(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def attachment(self) -> Optional[Attachment]:
        if self.file_url is None or self.file_name is None or self.file_type is None:
            return None
        return Attachment(url=self.file_url, name=self.file_name, kind=self.file_type)


class UploadedFile(BaseModel):
    """Result of a standalone file upload"""

    url: str
    file_name: str = Field(..., alias="fileName")
    size: int
    content_type: Optional[str] = Field(default=None, alias="contentType")

    model_config = ConfigDict(populate_by_name=True, frozen=True)
