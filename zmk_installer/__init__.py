"""ZMK Corne Installer - fetch and flash ZMK firmware onto a split keyboard.

This package downloads the latest successful firmware build of a ZMK config
repository, verifies the UF2 flashing utility and writes the images to both
halves of a Corne keyboard.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
