from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from api.deps import get_message_service, get_message_service_transactional
from schemas.message import (
    MarkReadResponse,
    MessageStats,
    VisitorMessageCreate,
    VisitorMessageResponse,
)
from services.message_service import MessageService

router = APIRouter()


@router.get("", response_model=list[VisitorMessageResponse])
async def list_messages(
    service: Annotated[MessageService, Depends(get_message_service)],
):
    """All visitor messages, newest first"""
    return await service.list_all()


@router.get("/stats", response_model=MessageStats)
async def get_message_stats(
    service: Annotated[MessageService, Depends(get_message_service)],
):
    """Totals, unread count and trailing 7/30 day counts"""
    return await service.stats()


@router.post("", response_model=VisitorMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_message(
    data: VisitorMessageCreate,
    service: Annotated[MessageService, Depends(get_message_service_transactional)],
):
    """Contact form submission; email is stored trimmed and lower-cased"""
    return await service.create(data)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: str,
    service: Annotated[MessageService, Depends(get_message_service_transactional)],
):
    await service.delete(message_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{message_id}/mark-read", response_model=MarkReadResponse)
async def mark_message_read(
    message_id: str,
    service: Annotated[MessageService, Depends(get_message_service_transactional)],
):
    message = await service.mark_read(message_id)
    return MarkReadResponse(message="Message marked as read", item=message)
