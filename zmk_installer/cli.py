"""Thin CLI wrapper for zmk_installer.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from zmk_installer import __version__
from zmk_installer.config import Settings, get_settings, print_settings_json
from zmk_installer.errors import InstallerError
from zmk_installer.install.sequencer import InstallSequencer, build_request
from zmk_installer.types import FlashPurpose, FlashTarget, InstallStage, Side

app = typer.Typer(
    name="zmk-install",
    help="ZMK Corne Firmware Installer - fetch and flash both keyboard halves",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"zmk-corne-installer version {__version__}")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(console=err_console, show_path=False, markup=False)
        ],
        force=True,
    )


def wait_for_bootloader(target: FlashTarget) -> None:
    """Block until the operator confirms the half is in bootloader mode."""
    console.print(
        f"   Put {target.side.value} half in bootloader mode "
        "(double-tap reset button)"
    )
    typer.prompt(
        "Press ENTER when ready",
        default="",
        show_default=False,
        prompt_suffix="... ",
    )


def _fail(error: InstallerError) -> typer.Exit:
    err_console.print(f"❌ {error.message}", style="red", markup=False)
    return typer.Exit(code=1)


def _sequencer(settings: Settings) -> InstallSequencer:
    return InstallSequencer(settings, wait_for_bootloader=wait_for_bootloader)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """ZMK Corne Firmware Installer - fetch and flash both keyboard halves."""
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)


@app.command()
def install(
    repo: Annotated[
        str | None,
        typer.Argument(
            help="GitHub repository",
            metavar="REPO",
            show_default="jrhy/zmk-config-corne",
        ),
    ] = None,
    branch: Annotated[
        str | None,
        typer.Argument(
            help="Branch to take the build from",
            metavar="BRANCH",
            show_default="main",
        ),
    ] = None,
    skip_reset: Annotated[
        bool | None,
        typer.Argument(
            help="true to skip the settings reset",
            metavar="SKIP_RESET",
            show_default="false",
        ),
    ] = None,
) -> None:
    """Download the latest firmware and flash both halves.

    Resets both halves (right, then left) unless SKIP_RESET is true, then
    flashes the left and right halves. Each step waits for you to put the
    half into bootloader mode.
    """
    settings = get_settings()
    request = build_request(settings, repo, branch, skip_reset)

    console.print("[bold]ZMK Corne Firmware Installer[/bold]")
    console.print(f"  Repository: {request.repo}")
    console.print(f"  Branch:     {request.branch}")
    console.print()

    try:
        result = _sequencer(settings).run(request)
    except InstallerError as e:
        raise _fail(e) from None

    console.print()
    console.print("[green]✨ Installation complete![/green]")
    console.print(f"  Build run: {result.bundle.run_id}")
    console.print(
        "Both halves should now be booting with your customized firmware."
    )


@app.command()
def fetch(
    repo: Annotated[
        str | None,
        typer.Argument(
            help="GitHub repository",
            metavar="REPO",
            show_default="jrhy/zmk-config-corne",
        ),
    ] = None,
    branch: Annotated[
        str | None,
        typer.Argument(
            help="Branch to take the build from",
            metavar="BRANCH",
            show_default="main",
        ),
    ] = None,
) -> None:
    """Download the latest firmware and list the images without flashing."""
    settings = get_settings()
    request = build_request(settings, repo, branch)
    sequencer = _sequencer(settings)

    try:
        sequencer.check_prerequisites()
        bundle = sequencer.fetch_firmware(request)
        images = sequencer.locate_images(bundle)
    except InstallerError as e:
        raise _fail(e) from None

    console.print(f"[bold]Build run {bundle.run_id}[/bold]")
    if bundle.title:
        console.print(f"  Title: {bundle.title}")
    console.print(f"  Left:  {images.left}")
    console.print(f"  Right: {images.right}")
    console.print(f"  Reset: {images.reset}")


@app.command()
def flash(
    image: Annotated[Path, typer.Argument(help="UF2 image to write")],
    side: Annotated[
        Side,
        typer.Argument(help="Half to flash", case_sensitive=False),
    ],
    reset: Annotated[
        bool,
        typer.Option("--reset", help="Label the write as a settings reset"),
    ] = False,
) -> None:
    """Flash a single image onto one half."""
    settings = get_settings()
    sequencer = _sequencer(settings)

    purpose = FlashPurpose.RESET if reset else FlashPurpose.FIRMWARE
    if reset:
        stage = (
            InstallStage.RESET_LEFT if side is Side.LEFT else InstallStage.RESET_RIGHT
        )
    else:
        stage = (
            InstallStage.FLASH_LEFT if side is Side.LEFT else InstallStage.FLASH_RIGHT
        )

    if not image.is_file():
        err_console.print(f"❌ Image not found: {image}", style="red", markup=False)
        raise typer.Exit(code=1)

    target = FlashTarget(side, image, purpose)
    try:
        sequencer.check_prerequisites()
        tool_path = sequencer.verify_tools()
        sequencer.flash(stage, target, tool_path)
    except InstallerError as e:
        raise _fail(e) from None

    console.print(f"[green]✅ {target.label} flashed![/green]")


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings), markup=False, soft_wrap=True)
        return

    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Install:[/bold]")
    console.print(f"  Repository:          {settings.default_repo}")
    console.print(f"  Branch:              {settings.default_branch}")
    console.print(f"  Skip reset:          {settings.skip_reset}")
    console.print(f"  Work directory:      {settings.work_dir}")
    console.print()
    console.print("[bold]Firmware:[/bold]")
    console.print(f"  Shield:              {settings.shield}")
    console.print(f"  Board:               {settings.board}")
    console.print(f"  Board revision:      {settings.board_revision}")
    console.print(f"  Firmware name:       {settings.firmware_name}")
    console.print()
    console.print("[bold]Tools:[/bold]")
    console.print(f"  GitHub CLI:          {settings.gh_executable}")
    console.print(f"  Python:              {settings.python_executable}")
    console.print(f"  uf2conv URL:         {settings.uf2conv_url}")
    console.print(f"  Verify checksums:    {settings.verify_checksums}")
    console.print()
    console.print("[bold]Flashing:[/bold]")
    console.print(
        f"  I/O error signature: {settings.io_error_signature}", markup=False
    )
    console.print(f"  Settle seconds:      {settings.settle_seconds}")
    console.print(f"  Flash timeout:       {settings.flash_timeout}")
    console.print(f"  Download timeout:    {settings.download_timeout}")
    console.print(f"  Log level:           {settings.log_level}")


if __name__ == "__main__":
    app()
