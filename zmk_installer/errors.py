"""Error taxonomy for zmk_installer.

Every error is fatal: the install aborts and the operator re-runs the whole
sequence after fixing the cause. Each error carries a stable code for
structured handling.
"""

# Error code constants
PREREQUISITE_MISSING = "prerequisite_missing"
CHECKSUM_MISMATCH = "checksum_mismatch"
NO_SUCCESSFUL_BUILD = "no_successful_build"
DOWNLOAD_FAILED = "download_failed"
IMAGE_NOT_FOUND = "image_not_found"
FLASH_FAILED = "flash_failed"


class InstallerError(Exception):
    """Base exception for installer errors."""

    def __init__(self, message: str, code: str) -> None:
        """Initialize InstallerError.

        Args:
            message: Error description shown to the operator.
            code: Error code for structured error handling.
        """
        super().__init__(message)
        self.message = message
        self.code = code


class PrerequisiteMissingError(InstallerError):
    """A required external program is not installed."""

    def __init__(self, tool: str, hint: str | None = None) -> None:
        """Initialize PrerequisiteMissingError.

        Args:
            tool: Name of the missing program.
            hint: Optional installation hint appended to the message.
        """
        message = f"{tool} is required"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message, code=PREREQUISITE_MISSING)
        self.tool = tool


class ChecksumMismatchError(InstallerError):
    """A downloaded tool does not match its expected digest."""

    def __init__(self, name: str, expected: str, actual: str) -> None:
        """Initialize ChecksumMismatchError.

        Args:
            name: Asset name.
            expected: Expected hex digest.
            actual: Digest computed from the downloaded file.
        """
        super().__init__(
            f"Checksum mismatch for {name}!\nExpected: {expected}\nActual: {actual}",
            code=CHECKSUM_MISMATCH,
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class NoSuccessfulBuildError(InstallerError):
    """No completed successful build exists for the branch."""

    def __init__(self, repo: str, branch: str) -> None:
        """Initialize NoSuccessfulBuildError.

        Args:
            repo: GitHub repository (owner/name).
            branch: Branch that has no successful build.
        """
        super().__init__(
            f"No successful builds found for {repo} on branch {branch}. "
            "Check GitHub Actions.",
            code=NO_SUCCESSFUL_BUILD,
        )
        self.repo = repo
        self.branch = branch


class DownloadFailedError(InstallerError):
    """Retrieval of a tool or firmware artifact failed.

    Attributes:
        reason: Finer-grained failure code (http_error, timeout, ...).
    """

    def __init__(self, message: str, reason: str = "download_error") -> None:
        """Initialize DownloadFailedError.

        Args:
            message: Error description.
            reason: Finer-grained failure code.
        """
        super().__init__(message, code=DOWNLOAD_FAILED)
        self.reason = reason


class ImageNotFoundError(InstallerError):
    """An expected firmware image is missing from the bundle."""

    def __init__(self, role: str, path: str) -> None:
        """Initialize ImageNotFoundError.

        Args:
            role: Which image is missing (left, right or reset).
            path: Path where the image was expected.
        """
        super().__init__(
            f"{role.capitalize()} firmware not found: {path}", code=IMAGE_NOT_FOUND
        )
        self.role = role
        self.path = path


class FlashFailedError(InstallerError):
    """The flashing utility reported a genuine failure."""

    def __init__(self, label: str, output: str) -> None:
        """Initialize FlashFailedError.

        Args:
            label: Human-readable flash target, e.g. "LEFT half".
            output: Combined output of the flashing utility.
        """
        message = f"Failed to flash {label}"
        if output.strip():
            message = f"{message}:\n{output.strip()}"
        super().__init__(message, code=FLASH_FAILED)
        self.label = label
        self.output = output


__all__ = [
    "CHECKSUM_MISMATCH",
    "ChecksumMismatchError",
    "DOWNLOAD_FAILED",
    "DownloadFailedError",
    "FLASH_FAILED",
    "FlashFailedError",
    "IMAGE_NOT_FOUND",
    "ImageNotFoundError",
    "InstallerError",
    "NO_SUCCESSFUL_BUILD",
    "NoSuccessfulBuildError",
    "PREREQUISITE_MISSING",
    "PrerequisiteMissingError",
]
