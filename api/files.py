from typing import Annotated, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import StreamingResponse

from api.deps import get_attachment_service, get_blob_storage
from core.config import get_settings
from core.enums import AttachmentKind
from core.logging import get_logger
from core.storage_protocols import IBlobStorage
from schemas.timeline import UploadedFile
from services.attachment_service import AttachmentService, guess_content_type

logger = get_logger(__name__)

router = APIRouter()


async def _upload(file: Optional[UploadFile], kind: AttachmentKind, attachments: AttachmentService) -> UploadedFile:
    if file is None or not file.filename or not file.size:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")

    attachment = await attachments.upload_to(file.file, file.filename, kind, file.content_type)
    logger.info(f"Uploaded {kind.value} file {attachment.name} ({file.size} bytes)")
    return UploadedFile(
        url=attachment.url,
        file_name=attachment.name,
        size=file.size,
        content_type=file.content_type,
    )


@router.post("/upload-image", response_model=UploadedFile)
async def upload_image(
    attachments: Annotated[AttachmentService, Depends(get_attachment_service)],
    file: Optional[UploadFile] = File(None),
):
    """Store a file in the images container"""
    return await _upload(file, AttachmentKind.IMAGE, attachments)


@router.post("/upload-text", response_model=UploadedFile)
async def upload_text(
    attachments: Annotated[AttachmentService, Depends(get_attachment_service)],
    file: Optional[UploadFile] = File(None),
):
    """Store a file in the text files container"""
    return await _upload(file, AttachmentKind.TEXT, attachments)


@router.get("/download/{container}/{blob_name}")
async def download_file(
    container: str,
    blob_name: str,
    storage: Annotated[IBlobStorage, Depends(get_blob_storage)],
):
    """
    Stream a stored attachment.

    Only the configured image and text containers are readable.
    """
    if container not in get_settings().blob_containers:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid container name"
        )

    if not await storage.exists(container, blob_name):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    logger.info(f"Streaming file {blob_name} from container: {container}")
    return StreamingResponse(
        storage.download(container, blob_name),
        media_type=guess_content_type(blob_name),
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(blob_name)}"},
    )
