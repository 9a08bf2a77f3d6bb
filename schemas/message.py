from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from schemas.validators import ensure_utc, strip_required


class VisitorMessageCreate(BaseModel):
    """Contact form submission"""

    name: str = Field(..., max_length=100)
    email: EmailStr
    message: str = Field(..., max_length=2000)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v, "Name")

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        if isinstance(v, str):
            normalized = v.strip().lower()
            if len(normalized) > 255:
                raise ValueError("Email cannot exceed 255 characters")
            return normalized
        return v

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        return strip_required(v, "Message")


class VisitorMessageResponse(BaseModel):
    id: str
    name: str
    email: str
    message: str
    timestamp: datetime
    is_read: bool

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class MessageStats(BaseModel):
    """Aggregate counts over all visitor messages"""

    total: int = 0
    unread: int = 0
    last_message_date: Optional[datetime] = Field(default=None, alias="lastMessageDate")
    last_7_days: int = Field(default=0, alias="last7days")
    last_30_days: int = Field(default=0, alias="last30days")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class MarkReadResponse(BaseModel):
    message: str
    item: VisitorMessageResponse
