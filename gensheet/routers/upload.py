"""Upload router - photos and documents for checkpoint responses."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from gensheet.core.config import settings
from gensheet.core.deps import get_current_session, require_csrf_header
from gensheet.core.permissions import require_http
from gensheet.core.rate_limit import limiter, per_minute
from gensheet.schemas.auth import UserSession
from gensheet.services import upload_service
from gensheet.services.upload_service import UploadError

router = APIRouter()


@router.post("", dependencies=[Depends(require_csrf_header)])
@limiter.limit(per_minute(settings.RATE_LIMIT_API))
async def upload_file(
    request: Request,  # Required by limiter
    file: Annotated[UploadFile, File()],
    folder: Annotated[str | None, Form()] = None,
    session: UserSession = Depends(get_current_session),
) -> dict[str, Any]:
    """
    Store an uploaded file and return the storage result verbatim.

    Images come back with width/height and the delivery transformation.
    """
    require_http(session, "asset", "upload")

    content = await file.read()
    content_type = file.content_type or "application/octet-stream"
    try:
        return upload_service.upload_asset(
            data=content,
            filename=file.filename,
            content_type=content_type,
            folder=folder,
        )
    except UploadError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
