"""
Responsive variant generation.

For each destination density (ascending) the source is resized to
ceil(width / srcDensity * dstDensity) pixels wide and written as webp and/or
jpeg. Every file is handed to the asset context for content-addressed
naming, and its URI is collected into a per-format srcset.
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .context import AssetContext
from .logsystem import LogSystem, default_log_system
from .magick import Magick, SourceImage, find_magick, probe_image
from .options import Options, resolve_options

@dataclass(frozen=True)
class Asset:
    file: Path
    id: str
    options_string: str = ""

@dataclass(frozen=True)
class Variant:
    density: float
    format: str
    width: int
    uri: str

@dataclass
class ResultDescriptor:
    webp_src_set: str
    jpeg_src_set: str
    css: str
    display_width: int
    display_height: int
    default_src: str
    variants: List[Variant] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "webpSrcSet": self.webp_src_set,
            "jpegSrcSet": self.jpeg_src_set,
            "css": self.css,
            "displayWidth": self.display_width,
            "displayHeight": self.display_height,
            "defaultSrc": self.default_src,
        }

# ---------- Arithmetic and naming ----------

def density_label(density: float) -> str:
    """2 -> "2x", 1.5 -> "1.5x", 0.75 -> "0.75x"."""
    return f"{density:.3f}".rstrip("0").rstrip(".") + "x"

def output_width(source_width: int, src_density: float, dst_density: float) -> int:
    return math.ceil(source_width / src_density * dst_density)

def display_size(options: Options, source: SourceImage) -> Tuple[int, int]:
    width = options.display_width or math.ceil(source.width / options.src_density)
    height = options.display_height or math.ceil(source.height / options.src_density)
    return width, height

def variant_filename(stem: str, label: str, ext: str) -> str:
    return f"{stem}-{label}.{ext}"

def variant_formats(options: Options) -> List[str]:
    """Formats written per density, in order. The last one becomes defaultSrc."""
    formats = []
    if options.webp:
        formats.append("webp")
    if options.fallback == "jpeg":
        formats.append("jpeg")
    return formats

# ---------- Generation ----------

def generate_variants(
    options: Options,
    source: SourceImage,
    context: AssetContext,
    magick: Magick,
    log: Optional[LogSystem] = None,
) -> ResultDescriptor:
    log = log or default_log_system()
    src_sets: Dict[str, List[str]] = {"webp": [], "jpeg": []}
    variants: List[Variant] = []
    formats = variant_formats(options)
    default_src = ""

    with context.working_dir() as work_dir:
        # Relies on ascending densities: the final iteration is the largest one
        for density in sorted(options.dst_density):
            width = output_width(source.width, options.src_density, density)
            label = density_label(density)
            for fmt in formats:
                out_path = work_dir / variant_filename(source.path.stem, label, fmt)
                magick.convert(source.input_spec, out_path, width, webp=(fmt == "webp"), log=log)
                uri = context.uri_for(context.hash_and_rename_file(out_path))
                src_sets[fmt].append(f"{uri} {label}")
                variants.append(Variant(density=density, format=fmt, width=width, uri=uri))
                default_src = uri

    display_width, display_height = display_size(options, source)
    return ResultDescriptor(
        webp_src_set=", ".join(src_sets["webp"]),
        jpeg_src_set=", ".join(src_sets["jpeg"]),
        css=f"width: {display_width}px; height: {display_height}px",
        display_width=display_width,
        display_height=display_height,
        default_src=default_src,
        variants=variants,
    )

def import_asset(
    asset: Asset,
    context: AssetContext,
    magick: Optional[Magick] = None,
    log: Optional[LogSystem] = None,
    defaults: Optional[Dict[str, Any]] = None,
) -> ResultDescriptor:
    """
    Resolve options, probe the source and write every variant.

    Raises OptionsError for bad options or image sizes and ConverterError
    when the image tool fails; nothing is returned for a partial run.
    """
    log = log or default_log_system()
    options = resolve_options(asset.options_string, defaults=defaults, asset_id=asset.id, log=log)
    if not Path(asset.file).is_file():
        raise FileNotFoundError(f"Source image not found for {asset.id}: {asset.file}")
    magick = magick or find_magick()
    source = probe_image(asset.file, magick, asset_id=asset.id, log=log)
    return generate_variants(options, source, context, magick, log=log)
