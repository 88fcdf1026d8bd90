"""Reversible encryption for file path tokens.

Uploaded documents are referenced by clients through opaque tokens instead
of raw paths. Uses Fernet (AES-128-CBC + HMAC-SHA256) from the cryptography
library, so a token is both confidential and tamper-evident.
"""

from cryptography.fernet import Fernet, InvalidToken

from campus_erp.core.config import settings


class FileTokenKeyError(Exception):
    """FILE_TOKEN_KEY is missing or is not a valid Fernet key."""


class PathDecryptionError(Exception):
    """Token is malformed, expired, or was encrypted under another key."""


def _get_fernet() -> Fernet:
    key = settings.file_token_key.get_secret_value()
    if not key:
        raise FileTokenKeyError("FILE_TOKEN_KEY is not set")
    try:
        return Fernet(key)
    except ValueError as exc:
        raise FileTokenKeyError("FILE_TOKEN_KEY is not a valid Fernet key") from exc


def encrypt_file_path(relative_path: str) -> str:
    """Encrypt a path relative to the uploads root into a URL-safe token."""
    f = _get_fernet()
    return f.encrypt(relative_path.encode("utf-8")).decode("ascii")


def decrypt_file_path(token: str) -> str:
    """Decrypt a path token back into the relative path it was issued for.

    Args:
        token: Token from the ``path`` query parameter.

    Returns:
        The relative path (not yet validated against traversal).

    Raises:
        FileTokenKeyError: If the server has no usable key.
        PathDecryptionError: If the token cannot be decrypted, has outlived
            FILE_TOKEN_TTL_SECONDS, or decrypts to an empty / non-UTF-8 value.
    """
    f = _get_fernet()
    try:
        plain = f.decrypt(
            token.encode("utf-8"), ttl=settings.file_token_ttl_seconds
        ).decode("utf-8")
    except (InvalidToken, ValueError) as exc:
        raise PathDecryptionError("Invalid encrypted file path") from exc

    if not plain:
        raise PathDecryptionError("Encrypted file path is empty")
    return plain
