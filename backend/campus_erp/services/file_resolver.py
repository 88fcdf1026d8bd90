"""Secure file resolution for uploaded documents.

Pipeline (one call per request, no shared state):
    decrypt_file_path(token)      -> relative path       (core.crypto)
    resolve_safe_path(path, root) -> absolute path | None
    content_type_for(path)        -> MIME type
    open_for_streaming(path)      -> (handle, size)
    iter_file(handle)             -> chunks for StreamingResponse

Security: the traversal check runs on the normalized, pre-join path, and the
joined path is additionally canonicalized (symlinks followed) and must stay
a descendant of the canonical uploads root.
"""

import os
import posixpath
import re
from collections.abc import Iterator
from pathlib import Path, PurePosixPath
from typing import BinaryIO

import structlog

logger = structlog.get_logger()

# Chunk size for streaming files (64 KB)
CHUNK_SIZE_BYTES = 64 * 1024

_DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}


def _normalize_relative(path: str) -> str | None:
    """Normalize a client-supplied path relative to the uploads root.

    Returns None if the path is unusable (NUL byte, parent segment).
    """
    if "\x00" in path:
        return None

    normalized = posixpath.normpath(path.replace("\\", "/")).lstrip("/")
    if not normalized or normalized == ".":
        return None

    # Prevent directory traversal attack
    if ".." in PurePosixPath(normalized).parts:
        return None

    return normalized


def resolve_safe_path(path: str, uploads_root: str | os.PathLike[str]) -> Path | None:
    """Validate a relative path and join it against the uploads root.

    Args:
        path: Decrypted, untrusted path relative to the uploads root.
        uploads_root: Trusted base directory.

    Returns:
        Absolute path of an existing regular file inside the root, or None
        if the path is a traversal attempt, escapes the root through a
        symlink, or does not name an existing file.
    """
    normalized = _normalize_relative(path)
    if normalized is None:
        return None

    root = Path(uploads_root).absolute()
    candidate = root / normalized

    real_root = root.resolve()
    real_candidate = candidate.resolve()
    if not real_candidate.is_relative_to(real_root):
        logger.warning(
            "File path escapes uploads root",
            normalized_path=normalized,
        )
        return None

    if not real_candidate.is_file():
        return None

    return candidate


def content_type_for(path: str | os.PathLike[str]) -> str:
    """Return the MIME type for a file based on its lowercased extension.

    Unknown extensions map to application/octet-stream.
    """
    ext = os.path.splitext(os.fspath(path))[1].lower()
    return CONTENT_TYPES.get(ext, _DEFAULT_CONTENT_TYPE)


def open_for_streaming(path: Path) -> tuple[BinaryIO, int]:
    """Open a resolved file before the response starts.

    Opening eagerly means permission or I/O errors surface while a JSON
    error response can still be sent.

    Returns:
        (binary handle, size in bytes). The caller owns the handle; pass it
        to iter_file() which closes it.

    Raises:
        OSError: If the file cannot be opened or stat'ed.
    """
    handle = path.open("rb")
    try:
        size = os.fstat(handle.fileno()).st_size
    except OSError:
        handle.close()
        raise
    return handle, size


def iter_file(
    handle: BinaryIO,
    chunk_size: int = CHUNK_SIZE_BYTES,
) -> Iterator[bytes]:
    """Yield a file's bytes incrementally and close the handle on every exit.

    The handle is released when the file is exhausted, when a read fails,
    and when the generator is closed early (client disconnect). A read
    failure is re-raised: headers are already sent at that point, so the
    server can only abort the connection.
    """
    with handle:
        try:
            while chunk := handle.read(chunk_size):
                yield chunk
        except OSError:
            logger.error("File stream interrupted", file=getattr(handle, "name", None))
            raise


def sanitize_filename_for_header(filename: str, max_length: int = 200) -> str:
    """Sanitize filename for Content-Disposition header.

    Prevents HTTP header injection by removing dangerous characters.

    Args:
        filename: Original filename.
        max_length: Maximum allowed filename length.

    Returns:
        Sanitized filename safe for HTTP headers.
    """
    # Quotes, newlines, carriage returns, backslashes, semicolons
    safe = re.sub(r'["\r\n\\;]', "", filename)

    # Control characters and anything outside latin-1 (header encoding)
    safe = re.sub(r"[\x00-\x1f\x7f]", "", safe)
    safe = safe.encode("latin-1", "ignore").decode("latin-1")

    if len(safe) > max_length:
        # Preserve extension if present
        if "." in safe:
            name, ext = safe.rsplit(".", 1)
            ext = f".{ext}"
            safe = name[: max_length - len(ext)] + ext
        else:
            safe = safe[:max_length]

    if not safe:
        safe = "download"

    return safe
