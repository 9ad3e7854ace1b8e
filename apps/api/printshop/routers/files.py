"""Serves files stored by the local storage backend (development setups)."""

import os

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from printshop.core.config import settings
from printshop.services.storage_service import LocalStorage

router = APIRouter(prefix=settings.LOCAL_FILES_URL_PREFIX.rstrip("/"), tags=["Files"])


@router.get("/{storage_key:path}")
def get_file(storage_key: str):
    """Stored attachment by key; 404 unless the local backend is active."""
    if settings.STORAGE_BACKEND != "local":
        raise HTTPException(status_code=404, detail="File not found")
    try:
        path = LocalStorage().resolve_path(storage_key)
    except ValueError:
        raise HTTPException(status_code=404, detail="File not found")
    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path)
