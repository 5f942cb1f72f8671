"""Shared type definitions for zmk_installer.

This module contains enums and dataclasses shared across subpackages to
avoid circular imports. Every entity here lives for a single run only.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class Side(str, Enum):
    """One physical half of the split keyboard."""

    LEFT = "LEFT"
    RIGHT = "RIGHT"

    @property
    def slug(self) -> str:
        """Lower-case name used in firmware filenames."""
        return self.value.lower()


class FlashPurpose(str, Enum):
    """Why an image is written to a half."""

    FIRMWARE = "firmware"
    RESET = "reset"


class FlashOutcomeKind(str, Enum):
    """Classification of one run of the flashing utility."""

    SUCCESS = "success"
    TOLERATED_REBOOT_ERROR = "tolerated_reboot_error"
    FAILURE = "failure"


class VerifyResult(str, Enum):
    """Result of a checksum verification."""

    VERIFIED = "verified"
    SKIPPED = "skipped"
    MISMATCH = "mismatch"


class InstallStage(str, Enum):
    """Stages of the install sequence, in execution order."""

    CHECK_PREREQS = "check_prereqs"
    VERIFY_TOOLS = "verify_tools"
    FETCH_FIRMWARE = "fetch_firmware"
    LOCATE_IMAGES = "locate_images"
    RESET_RIGHT = "reset_right"
    RESET_LEFT = "reset_left"
    FLASH_LEFT = "flash_left"
    FLASH_RIGHT = "flash_right"
    DONE = "done"


@dataclass(frozen=True)
class ToolAsset:
    """A downloadable file the flashing step depends on."""

    name: str
    url: str
    expected_sha256: str | None
    local_path: Path
    executable: bool = False


@dataclass(frozen=True)
class FirmwareBundle:
    """A downloaded firmware build.

    Attributes:
        repo: GitHub repository (owner/name).
        branch: Branch the build ran on.
        run_id: GitHub Actions run identifier.
        directory: Directory holding the downloaded images.
        title: Display title of the run, if reported.
    """

    repo: str
    branch: str
    run_id: int
    directory: Path
    title: str | None = None


@dataclass(frozen=True)
class FirmwareImages:
    """The three images required before flashing may proceed."""

    left: Path
    right: Path
    reset: Path

    def for_side(self, side: Side) -> Path:
        """Return the application image for a half."""
        return self.left if side is Side.LEFT else self.right


@dataclass(frozen=True)
class FlashTarget:
    """One image destined for one half."""

    side: Side
    image_path: Path
    purpose: FlashPurpose = FlashPurpose.FIRMWARE

    @property
    def label(self) -> str:
        """Human-readable description, e.g. ``LEFT half (reset)``."""
        if self.purpose is FlashPurpose.RESET:
            return f"{self.side.value} half (reset)"
        return f"{self.side.value} half"


@dataclass(frozen=True)
class FlashOutcome:
    """Tagged result of one flash attempt.

    Attributes:
        kind: Outcome classification.
        output: Combined stdout/stderr captured from the flashing utility.
        exit_code: Process exit code (None if the tool could not start).
    """

    kind: FlashOutcomeKind
    output: str = ""
    exit_code: int | None = None

    @property
    def ok(self) -> bool:
        """True for both SUCCESS and TOLERATED_REBOOT_ERROR."""
        return self.kind is not FlashOutcomeKind.FAILURE


@dataclass(frozen=True)
class InstallRequest:
    """What the operator asked to install."""

    repo: str
    branch: str
    skip_reset: bool = False


@dataclass
class InstallResult:
    """Record of a completed install run."""

    request: InstallRequest
    bundle: FirmwareBundle
    images: FirmwareImages
    stages: list[InstallStage] = field(default_factory=list)
    outcomes: list[tuple[FlashTarget, FlashOutcome]] = field(default_factory=list)


__all__ = [
    "FirmwareBundle",
    "FirmwareImages",
    "FlashOutcome",
    "FlashOutcomeKind",
    "FlashPurpose",
    "FlashTarget",
    "InstallRequest",
    "InstallResult",
    "InstallStage",
    "Side",
    "ToolAsset",
    "VerifyResult",
]
