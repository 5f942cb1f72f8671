"""Install orchestration.

Runs prerequisites, tool verification, firmware download, image lookup,
the optional settings reset and the flashing of both halves in a fixed
order, aborting on the first failure.
"""

from zmk_installer.install.sequencer import (
    FLASH_ORDER,
    RESET_ORDER,
    InstallSequencer,
    build_request,
    check_prerequisites,
    required_programs,
)

__all__ = [
    "FLASH_ORDER",
    "InstallSequencer",
    "RESET_ORDER",
    "build_request",
    "check_prerequisites",
    "required_programs",
]
