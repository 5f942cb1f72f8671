"""UF2 bootloader flashing.

This module handles:
- Gating each write on the operator putting the half in bootloader mode
- A single capture-then-classify run of the flashing utility
- Tolerating the I/O error emitted when the half reboots mid-write
"""

from zmk_installer.flash.operation import (
    DEFAULT_IO_ERROR_SIGNATURE,
    BootloaderGate,
    ToolRun,
    classify_flash_output,
    compose_flash_command,
    flash_target,
    run_flash_tool,
)

__all__ = [
    "BootloaderGate",
    "DEFAULT_IO_ERROR_SIGNATURE",
    "ToolRun",
    "classify_flash_output",
    "compose_flash_command",
    "flash_target",
    "run_flash_tool",
]
