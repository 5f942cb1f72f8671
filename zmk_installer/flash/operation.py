"""Flash operation for UF2 bootloader targets.

Writing new firmware makes the half reboot into it, which severs the
storage connection the flashing utility is still using. The utility then
reports an input/output error even though the write succeeded. This module
tells that expected reboot error apart from a genuine failure:

1. Block until the operator has put the half into bootloader mode.
2. Run the flashing utility once, capturing stdout and stderr together.
3. Classify the captured text: the I/O-error signature means the half
   rebooted (tolerated); otherwise the exit code decides.
4. Let the half settle before the next step addresses it.

Failures are never retried.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from zmk_installer.types import (
    FlashOutcome,
    FlashOutcomeKind,
    FlashPurpose,
    FlashTarget,
)

if TYPE_CHECKING:
    from zmk_installer.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_IO_ERROR_SIGNATURE = "Input/output error"

BootloaderGate = Callable[[FlashTarget], None]


@dataclass(frozen=True)
class ToolRun:
    """Captured result of one run of the flashing utility.

    Attributes:
        command: The command that was executed.
        exit_code: Process exit code (None if it never started or timed out).
        output: Combined stdout and stderr.
    """

    command: str
    exit_code: int | None
    output: str


def compose_flash_command(
    tool_path: Path, image_path: Path, python: str = "python3"
) -> list[str]:
    """Compose the uf2conv.py command that writes an image to the drive."""
    return [python, str(tool_path), "-w", "-D", str(image_path)]


def run_flash_tool(
    tool_path: Path,
    image_path: Path,
    *,
    python: str = "python3",
    timeout: int | None = None,
) -> ToolRun:
    """Run the flashing utility once and capture its output.

    Launch errors and timeouts are folded into the captured output so they
    go through the same classification as any other run. Output is decoded
    as UTF-8 with undecodable bytes replaced.

    Args:
        tool_path: Path to uf2conv.py.
        image_path: UF2 image to write.
        python: Interpreter used to run the utility.
        timeout: Timeout in seconds (None = no timeout).

    Returns:
        ToolRun with exit code and combined output.
    """
    cmd = compose_flash_command(tool_path, image_path, python)
    cmd_str = shlex.join(cmd)
    logger.debug("Executing flash: %s", cmd_str)

    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.output or ""
        if isinstance(partial, bytes):
            partial = partial.decode(errors="replace")
        return ToolRun(
            command=cmd_str,
            exit_code=None,
            output=f"{partial}Flash timed out after {timeout} seconds",
        )
    except OSError as e:
        return ToolRun(
            command=cmd_str,
            exit_code=None,
            output=f"Failed to execute flash tool: {e}",
        )

    return ToolRun(
        command=cmd_str, exit_code=result.returncode, output=result.stdout or ""
    )


def classify_flash_output(
    output: str,
    exit_code: int | None,
    signature: str = DEFAULT_IO_ERROR_SIGNATURE,
) -> FlashOutcome:
    """Classify a captured run of the flashing utility.

    Args:
        output: Combined stdout/stderr text.
        exit_code: Process exit code, None if the tool never completed.
        signature: Text that marks the half rebooting mid-write.

    Returns:
        TOLERATED_REBOOT_ERROR when the signature appears (whatever the exit
        code), SUCCESS on a clean exit, FAILURE otherwise.
    """
    if signature and signature in output:
        return FlashOutcome(
            kind=FlashOutcomeKind.TOLERATED_REBOOT_ERROR,
            output=output,
            exit_code=exit_code,
        )

    if exit_code == 0:
        return FlashOutcome(
            kind=FlashOutcomeKind.SUCCESS, output=output, exit_code=exit_code
        )

    return FlashOutcome(
        kind=FlashOutcomeKind.FAILURE, output=output, exit_code=exit_code
    )


def flash_target(
    target: FlashTarget,
    tool_path: Path,
    *,
    settings: Settings,
    wait_for_bootloader: BootloaderGate,
    sleep: Callable[[float], None] = time.sleep,
) -> FlashOutcome:
    """Write one image to one half.

    Args:
        target: Image and half to flash.
        tool_path: Path to uf2conv.py.
        settings: Application settings (interpreter, signature, timings).
        wait_for_bootloader: Blocks until the half is in bootloader mode.
        sleep: Sleep function used for the settle pause.

    Returns:
        FlashOutcome of the single tool run.
    """
    verb = "Resetting" if target.purpose is FlashPurpose.RESET else "Flashing"
    logger.info("%s %s...", verb, target.label)

    wait_for_bootloader(target)

    run = run_flash_tool(
        tool_path,
        target.image_path,
        python=settings.python_executable,
        timeout=settings.flash_timeout,
    )
    outcome = classify_flash_output(
        run.output, run.exit_code, settings.io_error_signature
    )

    if not outcome.ok:
        logger.error(
            "Flash of %s failed (exit code %s)", target.label, run.exit_code
        )
        return outcome

    if outcome.kind is FlashOutcomeKind.TOLERATED_REBOOT_ERROR:
        logger.info("(I/O error during reboot is normal)")
    logger.info("%s done", target.label)

    sleep(settings.settle_seconds)
    return outcome


__all__ = [
    "BootloaderGate",
    "DEFAULT_IO_ERROR_SIGNATURE",
    "ToolRun",
    "classify_flash_output",
    "compose_flash_command",
    "flash_target",
    "run_flash_tool",
]
