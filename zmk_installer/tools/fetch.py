"""Flashing utility fetch module.

This module handles:
- Building the list of tool assets from settings
- Streaming downloads with httpx
- Checksum verification of each downloaded asset
"""

from __future__ import annotations

import logging
import stat
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from zmk_installer.errors import ChecksumMismatchError, DownloadFailedError
from zmk_installer.tools.checksum import ensure_checksum
from zmk_installer.types import ToolAsset, VerifyResult

if TYPE_CHECKING:
    from zmk_installer.config import Settings

logger = logging.getLogger(__name__)

# Chunk size for downloads (bytes)
DOWNLOAD_CHUNK_SIZE = 64 * 1024  # 64 KB

UF2CONV = "uf2conv.py"
UF2FAMILIES = "uf2families.json"


def default_tool_assets(settings: Settings) -> list[ToolAsset]:
    """Build the tool assets the flashing step needs.

    uf2conv.py reads uf2families.json from its own directory, so both land
    in the work directory side by side.

    Args:
        settings: Application settings.

    Returns:
        List of ToolAsset, uf2conv.py first.
    """
    return [
        ToolAsset(
            name=UF2CONV,
            url=settings.uf2conv_url,
            expected_sha256=settings.uf2conv_sha256,
            local_path=settings.work_dir / UF2CONV,
            executable=True,
        ),
        ToolAsset(
            name=UF2FAMILIES,
            url=settings.uf2families_url,
            expected_sha256=settings.uf2families_sha256,
            local_path=settings.work_dir / UF2FAMILIES,
        ),
    ]


def download_file(
    client: httpx.Client,
    url: str,
    dest_path: Path,
    timeout: float = 300,
    chunk_size: int = DOWNLOAD_CHUNK_SIZE,
) -> int:
    """Download a file to disk.

    Args:
        client: HTTPX client instance.
        url: URL to download from.
        dest_path: Destination path for the downloaded file.
        timeout: Download timeout in seconds.
        chunk_size: Size of chunks to download.

    Returns:
        Number of bytes written.

    Raises:
        DownloadFailedError: If download fails.
    """
    logger.debug("Downloading %s to %s", url, dest_path)

    try:
        with client.stream(
            "GET", url, timeout=timeout, follow_redirects=True
        ) as response:
            response.raise_for_status()

            dest_path.parent.mkdir(parents=True, exist_ok=True)
            total_bytes = 0
            with dest_path.open("wb") as f:
                for chunk in response.iter_bytes(chunk_size):
                    f.write(chunk)
                    total_bytes += len(chunk)

    except httpx.HTTPStatusError as e:
        raise DownloadFailedError(
            f"Failed to download {dest_path.name}: HTTP {e.response.status_code}",
            reason="http_error",
        ) from e
    except httpx.TimeoutException as e:
        raise DownloadFailedError(
            f"Failed to download {dest_path.name}: timed out",
            reason="timeout",
        ) from e
    except httpx.RequestError as e:
        raise DownloadFailedError(
            f"Failed to download {dest_path.name}: {e}",
            reason="network_error",
        ) from e

    logger.debug("Downloaded %s (%d bytes)", dest_path.name, total_bytes)
    return total_bytes


def _make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def fetch_tools(
    client: httpx.Client,
    assets: list[ToolAsset],
    *,
    verify: bool = True,
    timeout: float = 300,
) -> dict[str, VerifyResult]:
    """Download and verify every tool asset.

    Args:
        client: HTTPX client instance.
        assets: Assets to fetch, in order.
        verify: Whether to check digests.
        timeout: Per-download timeout in seconds.

    Returns:
        Mapping of asset name to verification result.

    Raises:
        DownloadFailedError: If a download fails.
        ChecksumMismatchError: If a digest does not match. The mismatching
            file is removed first.
    """
    results: dict[str, VerifyResult] = {}

    for asset in assets:
        logger.info("Downloading %s...", asset.name)
        download_file(client, asset.url, asset.local_path, timeout=timeout)

        if asset.executable:
            _make_executable(asset.local_path)

        if not verify:
            logger.warning("Checksum verification disabled for %s", asset.name)
            results[asset.name] = VerifyResult.SKIPPED
            continue

        try:
            results[asset.name] = ensure_checksum(
                asset.local_path, asset.expected_sha256, asset.name
            )
        except ChecksumMismatchError:
            asset.local_path.unlink(missing_ok=True)
            raise

    return results


__all__ = [
    "UF2CONV",
    "UF2FAMILIES",
    "default_tool_assets",
    "download_file",
    "fetch_tools",
]
