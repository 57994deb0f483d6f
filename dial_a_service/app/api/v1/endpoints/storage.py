"""Serve uploaded files from the bucket storage."""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from dial_a_service.app.core.storage import StorageError, object_path


router = APIRouter()


@router.get("/storage/{bucket}/{path:path}")
async def get_object(bucket: str, path: str) -> FileResponse:
    try:
        target = object_path(bucket, path)
    except StorageError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if not target.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    return FileResponse(target)
