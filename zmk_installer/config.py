"""Configuration settings for zmk_installer.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI arguments > env vars > defaults.
"""

import re
import sys
import tempfile
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

UF2_UTILS_BASE = "https://raw.githubusercontent.com/microsoft/uf2/master/utils"

SHA256_HEX = re.compile(r"^[0-9a-f]{64}$")


def _default_work_dir() -> Path:
    """Return the default scratch directory (honours TMPDIR)."""
    return Path(tempfile.gettempdir()) / "zmk-corne-install"


def _default_python() -> str:
    """Return the interpreter used to run the flashing utility."""
    return sys.executable or "python3"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the ZMK_INSTALL_
    prefix. CLI arguments can override the install defaults at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="ZMK_INSTALL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    work_dir: Path = Field(
        default_factory=_default_work_dir,
        description="Scratch directory for downloaded tools and firmware",
    )

    # Install defaults
    default_repo: str = Field(
        default="jrhy/zmk-config-corne",
        description="GitHub repository holding the ZMK config and its builds",
    )
    default_branch: str = Field(
        default="main",
        description="Branch whose latest successful build is flashed",
    )
    skip_reset: bool = Field(
        default=False,
        description="Skip flashing the settings-reset image",
    )

    # Firmware naming
    shield: str = Field(default="corne", description="ZMK shield name")
    board: str = Field(default="nice_nano", description="ZMK board name")
    board_revision: str = Field(default="2.0.0", description="Board revision")
    firmware_name: str = Field(default="zmk", description="Firmware suffix")

    # Flashing utility
    uf2conv_url: str = Field(
        default=f"{UF2_UTILS_BASE}/uf2conv.py",
        description="Download URL of uf2conv.py",
    )
    uf2conv_sha256: str | None = Field(
        default="71b18dd65aeefedf0e25d63e4db3ae3c9b9e91e5bb4228d0cdc42b21dc97b8f1",
        description="Expected SHA-256 of uf2conv.py (unset to skip)",
    )
    uf2families_url: str = Field(
        default=f"{UF2_UTILS_BASE}/uf2families.json",
        description="Download URL of uf2families.json",
    )
    uf2families_sha256: str | None = Field(
        default=None,
        description="Expected SHA-256 of uf2families.json (unset to skip)",
    )
    verify_checksums: bool = Field(
        default=True,
        description="Verify tool checksums after download",
    )

    # External programs
    gh_executable: str = Field(default="gh", description="GitHub CLI executable")
    python_executable: str = Field(
        default_factory=_default_python,
        description="Python interpreter used to run uf2conv.py",
    )

    # Flash protocol
    io_error_signature: str = Field(
        default="Input/output error",
        min_length=1,
        description="Error text emitted when the half reboots mid-write",
    )
    settle_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Pause after each flash to let the half finish rebooting",
    )

    # Timeouts (in seconds)
    download_timeout: int = Field(
        default=300,
        ge=10,
        description="Timeout for tool and firmware downloads",
    )
    flash_timeout: int = Field(
        default=120,
        ge=10,
        description="Timeout for a single run of the flashing utility",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("uf2conv_sha256", "uf2families_sha256")
    @classmethod
    def validate_sha256(cls, v: str | None) -> str | None:
        """Validate a digest is 64 lower-case hex digits; empty means unset."""
        if not v:
            return None
        if not SHA256_HEX.match(v):
            raise ValueError(
                f"expected a 64-digit lower-case hex SHA-256 digest, got '{v}'"
            )
        return v

    @property
    def firmware_dir(self) -> Path:
        """Directory the firmware bundle is downloaded into."""
        return self.work_dir / "firmware"


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "UF2_UTILS_BASE", "get_settings", "print_settings_json"]
