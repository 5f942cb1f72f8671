"""Firmware image lookup inside a downloaded bundle.

Lookup is by exact filename only; other files in the bundle directory are
ignored.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from zmk_installer.config import Settings
from zmk_installer.errors import ImageNotFoundError
from zmk_installer.types import FirmwareImages, Side

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FirmwareNaming:
    """Components of ZMK's UF2 artifact names."""

    shield: str = "corne"
    board: str = "nice_nano"
    revision: str = "2.0.0"
    firmware: str = "zmk"

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirmwareNaming":
        return cls(
            shield=settings.shield,
            board=settings.board,
            revision=settings.board_revision,
            firmware=settings.firmware_name,
        )

    def side_filename(self, side: Side) -> str:
        """Return e.g. ``corne_left-nice_nano@2.0.0-zmk.uf2``."""
        return firmware_filename(
            self.shield, side.slug, self.board, self.revision, self.firmware
        )

    def reset_filename(self) -> str:
        """Return e.g. ``settings_reset-nice_nano@2.0.0-zmk.uf2``."""
        return reset_filename(self.board, self.revision, self.firmware)


def firmware_filename(
    shield: str, side: str, board: str, revision: str, firmware: str
) -> str:
    return f"{shield}_{side}-{board}@{revision}-{firmware}.uf2"


def reset_filename(board: str, revision: str, firmware: str) -> str:
    return f"settings_reset-{board}@{revision}-{firmware}.uf2"


def locate_images(directory: Path, naming: FirmwareNaming) -> FirmwareImages:
    """Find the left, right and settings-reset images.

    Args:
        directory: Bundle directory.
        naming: Filename components.

    Returns:
        FirmwareImages with all three paths.

    Raises:
        ImageNotFoundError: For the first missing image (left, right, reset).
    """
    candidates = [
        ("left", directory / naming.side_filename(Side.LEFT)),
        ("right", directory / naming.side_filename(Side.RIGHT)),
        ("reset", directory / naming.reset_filename()),
    ]

    for role, path in candidates:
        if not path.is_file():
            raise ImageNotFoundError(role, str(path))

    logger.info("Firmware files found")
    return FirmwareImages(
        left=candidates[0][1],
        right=candidates[1][1],
        reset=candidates[2][1],
    )


__all__ = [
    "FirmwareNaming",
    "firmware_filename",
    "locate_images",
    "reset_filename",
]
