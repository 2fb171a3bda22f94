from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from loris_gateway.api.dependencies import get_storage_service
from loris_gateway.core.exceptions import ValidationError
from loris_gateway.core.logging import get_logger
from loris_gateway.services.storage_service import StorageService

storage_router = APIRouter()
logger = get_logger(__name__)


@storage_router.post("/upload", summary="Upload a single image")
async def upload_image(
    image: Optional[UploadFile] = File(None),
    category: Optional[str] = Form(None),
    storage_service: StorageService = Depends(get_storage_service)
):
    """Uploads the multipart field ``image`` to object storage."""
    if image is None or not image.filename:
        raise ValidationError("No image file provided", field="image")

    result = await storage_service.upload_image(image, category)
    return {
        "success": True,
        "message": "File uploaded successfully",
        "data": result.model_dump(by_alias=True)
    }


@storage_router.post("/upload-multiple", summary="Upload several images")
async def upload_images(
    images: Optional[List[UploadFile]] = File(None),
    category: Optional[str] = Form(None),
    storage_service: StorageService = Depends(get_storage_service)
):
    """Uploads every file of the multipart field ``images``."""
    files = [image for image in (images or []) if image.filename]
    if not files:
        raise ValidationError("No image files provided", field="images")

    results = await storage_service.upload_images(files, category)
    return {
        "success": True,
        "message": f"{len(results)} files uploaded successfully",
        "data": [result.model_dump(by_alias=True) for result in results]
    }


@storage_router.delete("/delete/{file_name:path}", summary="Delete an image")
async def delete_image(
    file_name: str,
    storage_service: StorageService = Depends(get_storage_service)
):
    """Deletes a file by its full storage key, e.g. ``products/<uuid>.png``."""
    result = await storage_service.delete_image(file_name)
    return {
        "success": True,
        "message": "File deleted successfully",
        "data": result
    }
