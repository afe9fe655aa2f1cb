"""Responsive WebP/JPEG variants for build-time image imports."""

from .context import AssetContext
from .errors import ConverterError, ImageAssetError, MagickNotFoundError, OptionsError
from .logsystem import LogSystem, default_log_system
from .magick import Magick, SourceImage, find_magick, probe_image
from .markup import render_module, render_picture
from .options import DEFAULT_OPTIONS, Options, resolve_options
from .variants import Asset, ResultDescriptor, density_label, generate_variants, import_asset, output_width

__all__ = [
    "Asset",
    "AssetContext",
    "ConverterError",
    "DEFAULT_OPTIONS",
    "ImageAssetError",
    "LogSystem",
    "Magick",
    "MagickNotFoundError",
    "Options",
    "OptionsError",
    "ResultDescriptor",
    "SourceImage",
    "default_log_system",
    "density_label",
    "find_magick",
    "generate_variants",
    "import_asset",
    "output_width",
    "probe_image",
    "render_module",
    "render_picture",
    "resolve_options",
]
