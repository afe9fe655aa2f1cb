"""Exceptions raised while importing an image asset."""

from typing import Optional, Sequence

class ImageAssetError(Exception):
    """Base class for every failure that aborts an image import."""

class OptionsError(ImageAssetError, ValueError):
    """Invalid import options or an unusable source image."""

class ConverterError(ImageAssetError, RuntimeError):
    def __init__(self, message: str, returncode: Optional[int] = None, command: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.returncode = returncode
        self.command = list(command) if command else []

class MagickNotFoundError(ConverterError):
    pass
