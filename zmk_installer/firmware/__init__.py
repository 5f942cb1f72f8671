"""Firmware bundle retrieval and lookup.

This module handles:
- Locating the newest successful GitHub Actions build of a ZMK config
- Downloading its artifacts with the GitHub CLI
- Exact-match lookup of the left, right and settings-reset images
"""

from zmk_installer.firmware.artifacts import (
    download_run_artifacts,
    fetch_firmware,
    find_latest_successful_run,
)
from zmk_installer.firmware.bundle import (
    FirmwareNaming,
    firmware_filename,
    locate_images,
    reset_filename,
)

__all__ = [
    # Artifacts
    "download_run_artifacts",
    "fetch_firmware",
    "find_latest_successful_run",
    # Bundle
    "FirmwareNaming",
    "firmware_filename",
    "locate_images",
    "reset_filename",
]
