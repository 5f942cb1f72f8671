"""Install sequencer.

Runs the install as a strictly linear sequence:

    CHECK_PREREQS -> VERIFY_TOOLS -> FETCH_FIRMWARE -> LOCATE_IMAGES
      -> [RESET_RIGHT -> RESET_LEFT] -> FLASH_LEFT -> FLASH_RIGHT -> DONE

Any error aborts the whole sequence; there is no resume. The reset phase is
skipped entirely when requested.
"""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Callable
from pathlib import Path

import httpx

from zmk_installer.config import Settings
from zmk_installer.errors import FlashFailedError, PrerequisiteMissingError
from zmk_installer.firmware.artifacts import fetch_firmware
from zmk_installer.firmware.bundle import FirmwareNaming, locate_images
from zmk_installer.flash.operation import BootloaderGate, flash_target
from zmk_installer.tools.fetch import default_tool_assets, fetch_tools
from zmk_installer.types import (
    FirmwareBundle,
    FirmwareImages,
    FlashOutcome,
    FlashPurpose,
    FlashTarget,
    InstallRequest,
    InstallResult,
    InstallStage,
    Side,
    ToolAsset,
)

logger = logging.getLogger(__name__)

RESET_ORDER = (
    (InstallStage.RESET_RIGHT, Side.RIGHT),
    (InstallStage.RESET_LEFT, Side.LEFT),
)
FLASH_ORDER = (
    (InstallStage.FLASH_LEFT, Side.LEFT),
    (InstallStage.FLASH_RIGHT, Side.RIGHT),
)


def required_programs(settings: Settings) -> list[tuple[str, str | None]]:
    """Return (program, install hint) pairs that must be on PATH."""
    return [
        (
            settings.gh_executable,
            "Install the GitHub CLI from https://cli.github.com",
        ),
        (settings.python_executable, None),
    ]


def check_prerequisites(settings: Settings) -> None:
    """Ensure every required external program is installed.

    Raises:
        PrerequisiteMissingError: For the first program not found.
    """
    for program, hint in required_programs(settings):
        if shutil.which(program) is None:
            raise PrerequisiteMissingError(program, hint)
        logger.debug("Found %s", program)


def build_request(
    settings: Settings,
    repo: str | None = None,
    branch: str | None = None,
    skip_reset: bool | None = None,
) -> InstallRequest:
    """Fill unspecified request fields from settings."""
    return InstallRequest(
        repo=repo or settings.default_repo,
        branch=branch or settings.default_branch,
        skip_reset=settings.skip_reset if skip_reset is None else skip_reset,
    )


class InstallSequencer:
    """Drive one install run from prerequisites to both halves flashed.

    Attributes:
        settings: Application settings.
        stages: Stages completed by the current run, in order.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        wait_for_bootloader: BootloaderGate,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.wait_for_bootloader = wait_for_bootloader
        self.client = client
        self.sleep = sleep
        self.stages: list[InstallStage] = []

    def run(self, request: InstallRequest) -> InstallResult:
        """Run the full install sequence.

        Raises:
            InstallerError: Any stage failure; nothing after it runs.
        """
        self.stages = []
        logger.info("Repository: %s", request.repo)
        logger.info("Branch: %s", request.branch)

        self.check_prerequisites()
        tool_path = self.verify_tools()
        bundle = self.fetch_firmware(request)
        images = self.locate_images(bundle)

        result = InstallResult(
            request=request, bundle=bundle, images=images, stages=self.stages
        )

        if request.skip_reset:
            logger.info("Skipping settings reset")
        else:
            logger.info("Step 1: Resetting keyboard settings")
            for stage, side in RESET_ORDER:
                target = FlashTarget(side, images.reset, FlashPurpose.RESET)
                outcome = self.flash(stage, target, tool_path)
                result.outcomes.append((target, outcome))

        logger.info("Step 2: Flashing firmware")
        for stage, side in FLASH_ORDER:
            target = FlashTarget(side, images.for_side(side))
            outcome = self.flash(stage, target, tool_path)
            result.outcomes.append((target, outcome))

        self.stages.append(InstallStage.DONE)
        logger.info("Installation complete!")
        return result

    def check_prerequisites(self) -> None:
        check_prerequisites(self.settings)
        self.stages.append(InstallStage.CHECK_PREREQS)

    def verify_tools(self) -> Path:
        """Download and verify the flashing utility.

        Returns:
            Path to uf2conv.py.
        """
        self.settings.work_dir.mkdir(parents=True, exist_ok=True)
        assets = default_tool_assets(self.settings)

        if self.client is not None:
            self._fetch_tools(self.client, assets)
        else:
            with httpx.Client() as client:
                self._fetch_tools(client, assets)

        self.stages.append(InstallStage.VERIFY_TOOLS)
        return assets[0].local_path

    def _fetch_tools(self, client: httpx.Client, assets: list[ToolAsset]) -> None:
        fetch_tools(
            client,
            assets,
            verify=self.settings.verify_checksums,
            timeout=self.settings.download_timeout,
        )

    def fetch_firmware(self, request: InstallRequest) -> FirmwareBundle:
        bundle = fetch_firmware(
            request.repo,
            request.branch,
            self.settings.firmware_dir,
            gh=self.settings.gh_executable,
            timeout=self.settings.download_timeout,
        )
        self.stages.append(InstallStage.FETCH_FIRMWARE)
        return bundle

    def locate_images(self, bundle: FirmwareBundle) -> FirmwareImages:
        images = locate_images(
            bundle.directory, FirmwareNaming.from_settings(self.settings)
        )
        self.stages.append(InstallStage.LOCATE_IMAGES)
        return images

    def flash(
        self, stage: InstallStage, target: FlashTarget, tool_path: Path
    ) -> FlashOutcome:
        """Flash one target and abort on failure.

        Raises:
            FlashFailedError: If the flash outcome is a failure.
        """
        outcome = flash_target(
            target,
            tool_path,
            settings=self.settings,
            wait_for_bootloader=self.wait_for_bootloader,
            sleep=self.sleep,
        )
        if not outcome.ok:
            raise FlashFailedError(target.label, outcome.output)
        self.stages.append(stage)
        return outcome


__all__ = [
    "FLASH_ORDER",
    "InstallSequencer",
    "RESET_ORDER",
    "build_request",
    "check_prerequisites",
    "required_programs",
]
