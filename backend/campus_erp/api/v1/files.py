"""Secure file retrieval endpoint.

Uploaded documents (photos, certificates, fee receipts) are addressed by an
encrypted path token rather than a raw filesystem path.

Endpoints:
- GET /fetchFile?path=<token> - decrypt, validate, stream
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from campus_erp.api.deps import AnyRole
from campus_erp.core.config import settings
from campus_erp.core.crypto import (
    FileTokenKeyError,
    PathDecryptionError,
    decrypt_file_path,
)
from campus_erp.core.errors import InternalError, NotFoundError, ValidationError
from campus_erp.services.file_resolver import (
    content_type_for,
    iter_file,
    open_for_streaming,
    resolve_safe_path,
    sanitize_filename_for_header,
)

logger = structlog.get_logger()

router = APIRouter()

_FILE_REQUEST_FAILED_MSG = "Failed to process file request"


@router.get("/fetchFile")
async def fetch_file(
    principal: AnyRole,
    path: Annotated[str | None, Query(max_length=4096)] = None,
) -> StreamingResponse:
    """Fetch and stream a file using its encrypted path token.

    Any authenticated role may fetch files; a session is required.

    Args:
        principal: Current session (injected).
        path: Encrypted path token.

    Returns:
        StreamingResponse with the file bytes and a Content-Type resolved
        from the file extension.

    Raises:
        ValidationError: 400 if the token is missing or cannot be decrypted.
        NotFoundError: 404 if the path is a traversal attempt or no such file.
        InternalError: 500 if the server key is unusable or the file
            cannot be opened.
    """
    if not path:
        raise ValidationError("File path is required")

    try:
        relative_path = decrypt_file_path(path)
    except PathDecryptionError:
        raise ValidationError("Invalid file path") from None
    except FileTokenKeyError as exc:
        logger.error("File token key misconfigured", error=str(exc))
        raise InternalError(_FILE_REQUEST_FAILED_MSG) from exc

    absolute_path = resolve_safe_path(relative_path, settings.uploads_dir)
    if absolute_path is None:
        logger.info("File not found", user_id=str(principal.user_id))
        raise NotFoundError("File")

    try:
        handle, size = open_for_streaming(absolute_path)
    except OSError as exc:
        logger.error(
            "Failed to open file",
            user_id=str(principal.user_id),
            error=exc.__class__.__name__,
        )
        raise InternalError(_FILE_REQUEST_FAILED_MSG) from exc

    safe_filename = sanitize_filename_for_header(absolute_path.name)

    return StreamingResponse(
        iter_file(handle),
        media_type=content_type_for(absolute_path),
        headers={
            "Content-Length": str(size),
            "Content-Disposition": f'inline; filename="{safe_filename}"',
        },
    )
