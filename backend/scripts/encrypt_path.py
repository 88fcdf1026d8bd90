"""Produce an encrypted path token for a file under the uploads root.

The token is what clients pass to GET /api/v1/fetchFile?path=<token>.

Usage:
    cd backend && python -m scripts.encrypt_path photos/2024/ab12.jpg

Generate a fresh FILE_TOKEN_KEY with:
    cd backend && python -m scripts.encrypt_path --generate-key
"""

import argparse
import logging
import sys

from cryptography.fernet import Fernet

from campus_erp.core.config import settings
from campus_erp.core.crypto import FileTokenKeyError, encrypt_file_path
from campus_erp.services.file_resolver import resolve_safe_path

logger = logging.getLogger(__name__)


def build_token(relative_path: str, *, check_exists: bool = True) -> str:
    """Encrypt a root-relative path, optionally checking it resolves.

    Args:
        relative_path: Path relative to UPLOADS_DIR.
        check_exists: Refuse paths that would not be served by /fetchFile.

    Returns:
        Encrypted path token.

    Raises:
        ValueError: If check_exists is set and the path does not resolve to
            a regular file inside the uploads root.
        FileTokenKeyError: If FILE_TOKEN_KEY is missing or invalid.
    """
    if check_exists and resolve_safe_path(relative_path, settings.uploads_dir) is None:
        raise ValueError(f"{relative_path!r} is not a file under {settings.uploads_dir}")
    return encrypt_file_path(relative_path)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Prints the token (or a new key) on stdout."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", nargs="?")
    parser.add_argument("--generate-key", action="store_true")
    parser.add_argument(
        "--no-check",
        action="store_true",
        help="encrypt without checking the file exists",
    )
    args = parser.parse_args(argv)

    if args.generate_key:
        print(Fernet.generate_key().decode())
        return 0

    if not args.path:
        parser.error("path is required unless --generate-key is given")

    try:
        token = build_token(args.path, check_exists=not args.no_check)
    except (ValueError, FileTokenKeyError) as exc:
        logger.error("%s", exc)
        return 1

    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
