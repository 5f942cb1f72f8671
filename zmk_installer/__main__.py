"""Allow running the installer with ``python -m zmk_installer``."""

from zmk_installer.cli import app

app(prog_name="zmk-install")
