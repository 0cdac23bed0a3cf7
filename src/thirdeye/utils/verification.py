"""MD5 verification for downloaded update installers."""

import hashlib
import logging
from pathlib import Path

from thirdeye.errors import UpdateError

logger = logging.getLogger("thirdeye.verification")


def compute_md5(file_path: Path, chunk_size: int = 64 * 1024) -> str:
    """Compute MD5 hash of a file.

    Args:
        file_path: Path to file to hash
        chunk_size: Read buffer size

    Returns:
        32-character hex MD5 hash string

    Raises:
        OSError: If the file cannot be read
    """
    md5_hash = hashlib.md5()
    with open(file_path, "rb") as f:
        while chunk := f.read(chunk_size):
            md5_hash.update(chunk)
    return md5_hash.hexdigest()


def verify_md5_or_raise(file_path: Path, expected_md5: str) -> None:
    """Verify an installer's MD5, deleting it on mismatch.

    Raises:
        UpdateError: If the hash does not match or the file cannot be read
    """
    try:
        actual_md5 = compute_md5(file_path)
    except OSError as e:
        raise UpdateError(f"Cannot read {file_path.name}: {e}") from e

    if actual_md5 != expected_md5.lower():
        file_path.unlink(missing_ok=True)
        raise UpdateError(f"MD5_MISMATCH: expected {expected_md5}, got {actual_md5}")

    logger.info(f"MD5 verification passed for {file_path.name}")
