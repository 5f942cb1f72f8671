"""Checksum verification for downloaded tools.

Verification is advisory when no digest can be computed (the algorithm is
unavailable in this interpreter) or no expected digest is configured. A
mismatch is always fatal.
"""

import hashlib
import logging
from pathlib import Path

from zmk_installer.errors import ChecksumMismatchError
from zmk_installer.types import VerifyResult

logger = logging.getLogger(__name__)

# Chunk size for hashing (bytes)
HASH_CHUNK_SIZE = 64 * 1024  # 64 KB

DEFAULT_ALGORITHM = "sha256"


def digest_available(algorithm: str = DEFAULT_ALGORITHM) -> bool:
    """Return True if hashlib can compute the given digest."""
    return algorithm in hashlib.algorithms_available


def compute_file_digest(
    file_path: Path,
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = HASH_CHUNK_SIZE,
) -> str:
    """Compute the hex digest of a file.

    Args:
        file_path: Path to the file.
        algorithm: hashlib algorithm name.
        chunk_size: Size of chunks to read.

    Returns:
        Lower-case hex digest.
    """
    hasher = hashlib.new(algorithm)
    with file_path.open("rb") as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)
    return hasher.hexdigest()


def verify_checksum(
    file_path: Path,
    expected_hex: str | None,
    label: str,
    algorithm: str = DEFAULT_ALGORITHM,
) -> VerifyResult:
    """Compare a file's digest with the expected value.

    The comparison is case-sensitive against the lower-hex digest.

    Args:
        file_path: File to check.
        expected_hex: Expected digest, or None when none is configured.
        label: Asset name used in log messages.
        algorithm: hashlib algorithm name.

    Returns:
        VERIFIED, SKIPPED or MISMATCH.
    """
    if not digest_available(algorithm):
        logger.warning(
            "%s digest not available, skipping checksum verification for %s",
            algorithm,
            label,
        )
        return VerifyResult.SKIPPED

    if not expected_hex:
        logger.warning("No expected checksum configured for %s, skipping", label)
        return VerifyResult.SKIPPED

    actual = compute_file_digest(file_path, algorithm)
    if actual != expected_hex:
        return VerifyResult.MISMATCH

    logger.info("Checksum verified for %s", label)
    return VerifyResult.VERIFIED


def ensure_checksum(
    file_path: Path,
    expected_hex: str | None,
    label: str,
    algorithm: str = DEFAULT_ALGORITHM,
) -> VerifyResult:
    """Verify a file and raise on mismatch.

    Raises:
        ChecksumMismatchError: If the digest does not match.
    """
    result = verify_checksum(file_path, expected_hex, label, algorithm)
    if result is VerifyResult.MISMATCH:
        actual = compute_file_digest(file_path, algorithm)
        raise ChecksumMismatchError(label, expected_hex or "", actual)
    return result


__all__ = [
    "DEFAULT_ALGORITHM",
    "compute_file_digest",
    "digest_available",
    "ensure_checksum",
    "verify_checksum",
]
