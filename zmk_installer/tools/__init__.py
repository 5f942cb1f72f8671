"""Flashing utility download and verification.

This module handles:
- Downloading uf2conv.py and uf2families.json
- SHA-256 verification (advisory when no digest is available)
"""

from zmk_installer.tools.checksum import (
    compute_file_digest,
    digest_available,
    ensure_checksum,
    verify_checksum,
)
from zmk_installer.tools.fetch import (
    UF2CONV,
    UF2FAMILIES,
    default_tool_assets,
    download_file,
    fetch_tools,
)

__all__ = [
    # Checksum
    "compute_file_digest",
    "digest_available",
    "ensure_checksum",
    "verify_checksum",
    # Fetch
    "UF2CONV",
    "UF2FAMILIES",
    "default_tool_assets",
    "download_file",
    "fetch_tools",
]
