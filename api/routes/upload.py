"""
api/routes/upload.py -- POST /upload, multipart file ingestion.

Gated exactly like the resource API's write routes (AUTH_WRITE). The file
must arrive in the multipart field "file"; it is stored by UploadStore and
served back from the site root, so the returned path is a full URL.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile

from api.models import UploadResponse
from auth.dependencies import authorize_request
from auth.gate import Grant
from core.errors import UploadError
from resources.uploads import UploadStore

router = APIRouter()

_FIELD = "file"


@router.post("/upload", response_model=UploadResponse, status_code=201)
def upload(
    request: Request,
    file: Optional[UploadFile] = File(default=None),
    grant: Grant = Depends(authorize_request),
) -> UploadResponse:
    if file is None:
        raise UploadError("file field is required")
    uploads: UploadStore = request.app.state.uploads
    name = uploads.save(_FIELD, file.filename, file.file)
    return UploadResponse(path=f"{str(request.base_url).rstrip('/')}/{name}")
