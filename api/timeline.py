from datetime import date, datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from pydantic import ValidationError

from api.deps import (
    get_attachment_service,
    get_timeline_service,
    get_timeline_service_transactional,
)
from core.logging import get_logger
from schemas.timeline import Attachment, TimelineItemCreate, TimelineItemResponse
from schemas.validators import calendar_date
from services.attachment_service import AttachmentService
from services.timeline_service import TimelineService

logger = get_logger(__name__)

router = APIRouter()


def parse_timestamp(value: str) -> datetime:
    """Accept YYYY-MM-DD or a full ISO 8601 timestamp"""
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        logger.warning(f"Invalid date format received: {value}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid date format. Expected format: YYYY-MM-DD",
        ) from None


def parse_calendar_date(value: str) -> date:
    """UTC calendar date of a date or timestamp string; time-of-day is dropped"""
    return calendar_date(parse_timestamp(value))


def _build_item(
    item_date: str,
    title: str,
    description: str,
) -> TimelineItemCreate:
    """Validate form fields before any file is uploaded"""
    try:
        return TimelineItemCreate(
            date=parse_timestamp(item_date),
            title=title,
            description=description,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        ) from None


async def _upload_if_present(
    attachments: AttachmentService, file: Optional[UploadFile]
) -> Optional[Attachment]:
    if file is None or not file.filename or not file.size:
        return None
    return await attachments.upload(file.file, file.filename, file.content_type)


@router.get("", response_model=list[TimelineItemResponse])
async def list_timeline_items(
    service: Annotated[TimelineService, Depends(get_timeline_service)],
):
    """All timeline items, most recent first"""
    return await service.list_all()


@router.get("/date/{day}", response_model=TimelineItemResponse)
async def get_timeline_item_by_date(
    day: str,
    service: Annotated[TimelineService, Depends(get_timeline_service)],
):
    """First timeline item on a calendar date"""
    return await service.get_by_date(parse_calendar_date(day))


@router.get("/{item_id}", response_model=TimelineItemResponse)
async def get_timeline_item(
    item_id: str,
    service: Annotated[TimelineService, Depends(get_timeline_service)],
):
    return await service.get_by_id(item_id)


@router.post("", response_model=TimelineItemResponse, status_code=status.HTTP_201_CREATED)
async def create_timeline_item(
    service: Annotated[TimelineService, Depends(get_timeline_service_transactional)],
    attachments: Annotated[AttachmentService, Depends(get_attachment_service)],
    item_date: str = Form(..., alias="date", description="Entry date, YYYY-MM-DD or ISO timestamp"),
    title: str = Form(..., max_length=200),
    description: str = Form("", max_length=1000),
    file: UploadFile | None = File(None, description="Optional image or text attachment"),
):
    """
    Create a timeline item from a multipart form.

    An attached file goes to the images container when its extension is an
    image type and to the text files container otherwise.
    """
    data = _build_item(item_date, title, description)
    attachment = await _upload_if_present(attachments, file)
    return await service.create(data.model_copy(update={"attachment": attachment}))


@router.put("/{item_id}", response_model=TimelineItemResponse)
async def update_timeline_item(
    item_id: str,
    service: Annotated[TimelineService, Depends(get_timeline_service_transactional)],
    attachments: Annotated[AttachmentService, Depends(get_attachment_service)],
    item_date: str = Form(..., alias="date"),
    title: str = Form(..., max_length=200),
    description: str = Form("", max_length=1000),
    file: UploadFile | None = File(None),
):
    """Replace every field of a timeline item; without a file the attachment is kept"""
    # Fail before uploading anything for an unknown item
    data = _build_item(item_date, title, description)
    await service.get_by_id(item_id)

    attachment = await _upload_if_present(attachments, file)
    return await service.update(item_id, data.model_copy(update={"attachment": attachment}))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_timeline_item(
    item_id: str,
    service: Annotated[TimelineService, Depends(get_timeline_service_transactional)],
):
    await service.delete(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
