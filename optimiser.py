#!/usr/bin/env python3
"""
Responsive image importer.

For every image reference given on the command line:
- Resolves import options from defaults, an optional JSON defaults file and
  the query string on the reference (e.g. img/hero.jpg?srcDensity=3&webp=false).
- Generates WebP and JPEG variants for each destination density using
  ImageMagick (or GraphicsMagick), e.g. hero-1x.webp, hero-2x.jpeg.
- Stores every variant under a content-hashed name in --out.
- Prints, per image, the import module (export default {...}), the raw JSON
  descriptor, or a ready to paste <picture> element.

Images are imported in parallel; each import runs its conversions one at a time.

Requires: Python 3.8+, ImageMagick or GraphicsMagick, Pillow
"""

import argparse
import concurrent.futures as cf
import json
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Any

from image_asset import (
    Asset,
    AssetContext,
    ImageAssetError,
    LogSystem,
    Magick,
    find_magick,
    import_asset,
    render_module,
    render_picture,
)
from image_asset.context import DEFAULT_URI_PREFIX
from image_asset.logsystem import default_log_system, quiet_log_system
from image_asset.options import load_defaults

OUTPUT_FORMATS = ("module", "json", "html")

def parse_import_reference(ref: str) -> Tuple[Path, str]:
    """Split "path/to/img.jpg?webp=false" into the file and its options string."""
    path, sep, query = ref.partition("?")
    return Path(path), query if sep else ""

def render(descriptor, output_format: str, alt: str = "") -> str:
    if output_format == "json":
        return json.dumps(descriptor.to_dict(), indent=2)
    if output_format == "html":
        return render_picture(descriptor, alt=alt)
    return render_module(descriptor)

# ---------- Main processing ----------

def process_one(
    ref: str,
    context: AssetContext,
    magick: Magick,
    defaults: Dict[str, Any],
    output_format: str,
    log: LogSystem,
) -> Tuple[str, Optional[str]]:
    """
    Returns status string and the rendered output, or None on failure.
    """
    file, options_string = parse_import_reference(ref)
    asset = Asset(file=file, id=ref, options_string=options_string)
    try:
        descriptor = import_asset(asset, context, magick=magick, log=log, defaults=defaults)
    except (ImageAssetError, OSError) as e:
        return f"ERR   {ref}: {e}", None

    densities = sorted({v.density for v in descriptor.variants})
    status = f"DONE  {ref} -> {len(descriptor.variants)} variant(s) at {[f'{d:g}x' for d in densities]}"
    return status, render(descriptor, output_format, alt=file.stem)

def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate responsive WebP/JPEG variants for image imports.")
    parser.add_argument("refs", nargs="+", metavar="IMAGE[?OPTIONS]",
                        help='Image path, optionally with query string overrides (e.g. "hero.jpg?dstDensity=1&dstDensity=1.5")')
    parser.add_argument("--out", default="asset", help="Directory for the hashed variant files")
    parser.add_argument("--uri-prefix", default=DEFAULT_URI_PREFIX, help="URI path under which --out is served")
    parser.add_argument("--defaults", default=None, help="JSON file overriding the built-in default options")
    parser.add_argument("--format", choices=OUTPUT_FORMATS, default="module", help="What to print for each image")
    parser.add_argument("--threads", type=int, default=os.cpu_count() or 4, help="Images imported in parallel")
    parser.add_argument("--imagemagick-bin", default=None, help='Converter binary. For example "convert", "magick" or "gm"')
    parser.add_argument("--quiet", action="store_true", help="Do not echo converter commands")

    args = parser.parse_args(argv)

    try:
        magick = find_magick(args.imagemagick_bin)
        defaults = load_defaults(Path(args.defaults)) if args.defaults else {}
    except ImageAssetError as e:
        print(e, file=sys.stderr)
        return 1

    context = AssetContext(Path(args.out).resolve(), uri_prefix=args.uri_prefix)
    log = quiet_log_system() if args.quiet else default_log_system()

    print(f"Found {len(args.refs)} image(s), converter: {magick.bin}")
    print(f"Output: {context.dst_asset_dir}  uri prefix: {context.uri_prefix}")

    results: Dict[str, Optional[str]] = {}
    failed = 0
    with cf.ThreadPoolExecutor(max_workers=max(1, args.threads)) as ex:
        futures = {ex.submit(process_one, ref, context, magick, defaults, args.format, log): ref for ref in args.refs}
        for fut in cf.as_completed(futures):
            status, output = fut.result()
            print(status, file=sys.stderr if output is None else sys.stdout)
            if output is None:
                failed += 1
            results[futures[fut]] = output

    # Outputs in command line order
    for ref in args.refs:
        output = results.get(ref)
        if output is not None:
            print(f"\n// {ref}\n{output}" if args.format == "module" else f"\n{output}")

    if failed:
        print(f"{failed} of {len(args.refs)} image(s) failed", file=sys.stderr)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
