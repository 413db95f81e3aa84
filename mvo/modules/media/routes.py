from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from mvo.modules.media.schemas import UploadResponse
from mvo.modules.media.service import MediaService, DEFAULT_FOLDER
from mvo.core.dependencies import get_current_user
from typing import Optional, Dict

router = APIRouter(tags=["media"])


def get_media_service() -> MediaService:
    return MediaService()


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    folder: str = Form(DEFAULT_FOLDER),
    user_data: Dict = Depends(get_current_user),
    service: MediaService = Depends(get_media_service)
):
    """Upload an image or video for idea content and return its public URL"""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")
    if file.size is not None:
        service.check_size(file.size)
    content = await file.read()
    url = service.upload(content, file.filename, file.content_type, folder)
    return UploadResponse(url=url)
