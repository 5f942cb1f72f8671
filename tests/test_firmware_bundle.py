"""Tests for firmware/bundle.py module."""

import pytest

from zmk_installer.config import Settings
from zmk_installer.errors import ImageNotFoundError
from zmk_installer.firmware.bundle import (
    FirmwareNaming,
    firmware_filename,
    locate_images,
    reset_filename,
)
from zmk_installer.types import FirmwareImages, Side

LEFT = "corne_left-nice_nano@2.0.0-zmk.uf2"
RIGHT = "corne_right-nice_nano@2.0.0-zmk.uf2"
RESET = "settings_reset-nice_nano@2.0.0-zmk.uf2"


@pytest.fixture
def bundle_dir(tmp_path):
    """A bundle directory holding all three images."""
    for name in (LEFT, RIGHT, RESET):
        (tmp_path / name).write_bytes(b"UF2\n")
    return tmp_path


class TestFilenames:
    def test_firmware_filename(self):
        assert firmware_filename("corne", "left", "nice_nano", "2.0.0", "zmk") == LEFT

    def test_reset_filename(self):
        assert reset_filename("nice_nano", "2.0.0", "zmk") == RESET

    def test_naming_defaults(self):
        naming = FirmwareNaming()
        assert naming.side_filename(Side.LEFT) == LEFT
        assert naming.side_filename(Side.RIGHT) == RIGHT
        assert naming.reset_filename() == RESET

    def test_naming_from_settings(self):
        settings = Settings(shield="lily58", board="nice_nano_v2", board_revision="")
        naming = FirmwareNaming.from_settings(settings)
        assert naming.side_filename(Side.LEFT) == "lily58_left-nice_nano_v2@-zmk.uf2"


class TestLocateImages:
    """Tests for locate_images function."""

    def test_all_present(self, bundle_dir):
        images = locate_images(bundle_dir, FirmwareNaming())

        assert isinstance(images, FirmwareImages)
        assert images.left == bundle_dir / LEFT
        assert images.right == bundle_dir / RIGHT
        assert images.reset == bundle_dir / RESET

    def test_unrelated_files_ignored(self, bundle_dir):
        """Extra files never change the lookup result."""
        before = locate_images(bundle_dir, FirmwareNaming())

        (bundle_dir / "corne_left-nice_nano@2.0.0-zmk (1).uf2").write_bytes(b"x")
        (bundle_dir / "README.md").write_text("notes")
        (bundle_dir / "corne_left-nice_nano@2.1.0-zmk.uf2").write_bytes(b"x")

        assert locate_images(bundle_dir, FirmwareNaming()) == before

    @pytest.mark.parametrize(
        ("missing", "role"),
        [(LEFT, "left"), (RIGHT, "right"), (RESET, "reset")],
    )
    def test_missing_image(self, bundle_dir, missing, role):
        (bundle_dir / missing).unlink()

        with pytest.raises(ImageNotFoundError) as exc_info:
            locate_images(bundle_dir, FirmwareNaming())

        assert exc_info.value.role == role
        assert exc_info.value.path == str(bundle_dir / missing)
        assert exc_info.value.code == "image_not_found"

    def test_no_pattern_inference(self, tmp_path):
        """Similar but differently named files are not accepted."""
        (tmp_path / "corne_left-nice_nano@2.0.0-zmk.UF2").write_bytes(b"x")
        (tmp_path / RIGHT).write_bytes(b"x")
        (tmp_path / RESET).write_bytes(b"x")

        with pytest.raises(ImageNotFoundError) as exc_info:
            locate_images(tmp_path, FirmwareNaming())

        assert exc_info.value.role == "left"

    def test_directory_is_not_an_image(self, bundle_dir):
        (bundle_dir / LEFT).unlink()
        (bundle_dir / LEFT).mkdir()

        with pytest.raises(ImageNotFoundError):
            locate_images(bundle_dir, FirmwareNaming())

    def test_first_missing_reported(self, tmp_path):
        with pytest.raises(ImageNotFoundError) as exc_info:
            locate_images(tmp_path, FirmwareNaming())

        assert exc_info.value.role == "left"
        assert "Left firmware not found" in str(exc_info.value)
