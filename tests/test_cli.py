"""Smoke tests for the CLI.

These tests verify CLI wiring without requiring network access, the
GitHub CLI or a keyboard; the sequencer is patched.
"""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from zmk_installer import __version__
from zmk_installer.cli import app, wait_for_bootloader
from zmk_installer.errors import FlashFailedError, NoSuccessfulBuildError
from zmk_installer.types import (
    FirmwareBundle,
    FirmwareImages,
    FlashPurpose,
    FlashTarget,
    InstallRequest,
    InstallResult,
    InstallStage,
    Side,
)

runner = CliRunner()


def _result(request: InstallRequest, tmp_path: Path) -> InstallResult:
    return InstallResult(
        request=request,
        bundle=FirmwareBundle(request.repo, request.branch, 42, tmp_path),
        images=FirmwareImages(tmp_path / "l", tmp_path / "r", tmp_path / "x"),
        stages=[InstallStage.DONE],
    )


class TestCLIHelp:
    """Test CLI help and version commands."""

    def test_help_returns_zero(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "ZMK Corne Firmware Installer" in result.stdout

    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "Usage:" in result.output

    def test_install_help(self) -> None:
        result = runner.invoke(app, ["install", "--help"])
        assert result.exit_code == 0
        assert "REPO" in result.stdout
        assert "BRANCH" in result.stdout
        assert "SKIP_RESET" in result.stdout
        assert "default:" in result.stdout
        assert "jrhy/zmk-config-corne" in result.stdout
        assert "main" in result.stdout
        assert "false" in result.stdout

    def test_fetch_help_shows_defaults(self) -> None:
        result = runner.invoke(app, ["fetch", "--help"])
        assert result.exit_code == 0
        assert "REPO" in result.stdout
        assert "jrhy/zmk-config-corne" in result.stdout


class TestCLIConfig:
    """Test CLI config command."""

    def test_config_command(self) -> None:
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "Install:" in result.stdout
        assert "Firmware:" in result.stdout
        assert "Flashing:" in result.stdout
        assert "jrhy/zmk-config-corne" in result.stdout
        assert "Input/output error" in result.stdout

    def test_config_json(self) -> None:
        result = runner.invoke(app, ["config", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["default_branch"] == "main"
        assert data["settle_seconds"] == 2.0


class TestCLIInstall:
    """Test the install command with a patched sequencer."""

    def test_defaults(self, tmp_path) -> None:
        with patch("zmk_installer.cli.InstallSequencer") as mock_cls:
            mock_cls.return_value.run.side_effect = lambda r: _result(r, tmp_path)
            result = runner.invoke(app, ["install"])

        assert result.exit_code == 0, result.output
        request = mock_cls.return_value.run.call_args[0][0]
        assert request == InstallRequest("jrhy/zmk-config-corne", "main", False)
        assert "Installation complete" in result.stdout

    def test_positional_arguments(self, tmp_path) -> None:
        with patch("zmk_installer.cli.InstallSequencer") as mock_cls:
            mock_cls.return_value.run.side_effect = lambda r: _result(r, tmp_path)
            result = runner.invoke(app, ["install", "x/y", "dev", "true"])

        assert result.exit_code == 0, result.output
        request = mock_cls.return_value.run.call_args[0][0]
        assert request == InstallRequest("x/y", "dev", True)

    def test_skip_reset_false(self, tmp_path) -> None:
        with patch("zmk_installer.cli.InstallSequencer") as mock_cls:
            mock_cls.return_value.run.side_effect = lambda r: _result(r, tmp_path)
            result = runner.invoke(app, ["install", "x/y", "main", "false"])

        assert result.exit_code == 0, result.output
        assert mock_cls.return_value.run.call_args[0][0].skip_reset is False

    def test_gate_is_cli_prompt(self, tmp_path) -> None:
        with patch("zmk_installer.cli.InstallSequencer") as mock_cls:
            mock_cls.return_value.run.side_effect = lambda r: _result(r, tmp_path)
            runner.invoke(app, ["install"])

        assert mock_cls.call_args.kwargs["wait_for_bootloader"] is wait_for_bootloader

    def test_no_successful_build_exits_nonzero(self) -> None:
        with patch("zmk_installer.cli.InstallSequencer") as mock_cls:
            mock_cls.return_value.run.side_effect = NoSuccessfulBuildError(
                "x/y", "main"
            )
            result = runner.invoke(app, ["install", "x/y"])

        assert result.exit_code == 1
        assert "No successful builds found" in result.output

    def test_flash_failure_exits_nonzero(self) -> None:
        with patch("zmk_installer.cli.InstallSequencer") as mock_cls:
            mock_cls.return_value.run.side_effect = FlashFailedError(
                "LEFT half", "permission denied"
            )
            result = runner.invoke(app, ["install"])

        assert result.exit_code == 1
        assert "permission denied" in result.output


class TestCLIFetch:
    def test_lists_images(self, tmp_path) -> None:
        bundle = FirmwareBundle("x/y", "main", 42, tmp_path, title="Update keymap")
        images = FirmwareImages(
            tmp_path / "left.uf2", tmp_path / "right.uf2", tmp_path / "reset.uf2"
        )
        with patch("zmk_installer.cli.InstallSequencer") as mock_cls:
            sequencer = mock_cls.return_value
            sequencer.fetch_firmware.return_value = bundle
            sequencer.locate_images.return_value = images
            result = runner.invoke(app, ["fetch", "x/y"])

        assert result.exit_code == 0, result.output
        assert "Build run 42" in result.stdout
        assert "Update keymap" in result.stdout
        sequencer.check_prerequisites.assert_called_once()
        sequencer.flash.assert_not_called()


class TestCLIFlash:
    def test_missing_image(self, tmp_path) -> None:
        result = runner.invoke(app, ["flash", str(tmp_path / "nope.uf2"), "left"])
        assert result.exit_code == 1
        assert "Image not found" in result.output

    def test_flashes_single_half(self, tmp_path) -> None:
        image = tmp_path / "left.uf2"
        image.write_bytes(b"UF2\n")
        with patch("zmk_installer.cli.InstallSequencer") as mock_cls:
            sequencer = mock_cls.return_value
            sequencer.verify_tools.return_value = tmp_path / "uf2conv.py"
            result = runner.invoke(app, ["flash", str(image), "left"])

        assert result.exit_code == 0, result.output
        stage, target, tool_path = sequencer.flash.call_args[0]
        assert stage is InstallStage.FLASH_LEFT
        assert target == FlashTarget(Side.LEFT, image, FlashPurpose.FIRMWARE)
        assert tool_path == tmp_path / "uf2conv.py"

    def test_reset_flag(self, tmp_path) -> None:
        image = tmp_path / "reset.uf2"
        image.write_bytes(b"UF2\n")
        with patch("zmk_installer.cli.InstallSequencer") as mock_cls:
            sequencer = mock_cls.return_value
            sequencer.verify_tools.return_value = tmp_path / "uf2conv.py"
            result = runner.invoke(app, ["flash", str(image), "RIGHT", "--reset"])

        assert result.exit_code == 0, result.output
        stage, target, _ = sequencer.flash.call_args[0]
        assert stage is InstallStage.RESET_RIGHT
        assert target.purpose is FlashPurpose.RESET


class TestWaitForBootloader:
    def test_blocks_on_prompt(self) -> None:
        target = FlashTarget(Side.LEFT, Path("left.uf2"))
        with patch("zmk_installer.cli.typer.prompt") as mock_prompt:
            wait_for_bootloader(target)

        mock_prompt.assert_called_once()
        assert "ENTER" in mock_prompt.call_args[0][0]

    def test_prompt_reads_enter(self) -> None:
        """The prompt consumes one line of input per gate."""
        with patch("zmk_installer.cli.InstallSequencer") as mock_cls:

            def run(request):
                wait_for_bootloader(FlashTarget(Side.LEFT, Path("l.uf2")))
                wait_for_bootloader(FlashTarget(Side.RIGHT, Path("r.uf2")))
                return _result(request, Path("."))

            mock_cls.return_value.run.side_effect = run
            result = runner.invoke(app, ["install"], input="\n\n")

        assert result.exit_code == 0, result.output
        assert "Put LEFT half in bootloader mode" in result.stdout
        assert "Put RIGHT half in bootloader mode" in result.stdout
