"""
Thin wrapper around the ImageMagick / GraphicsMagick command line tools.

Only two operations are needed: `identify` to probe an image and `convert`
to write a resized variant. Both run to completion with stdout captured and
stderr passed straight through to the terminal.
"""

import os
import re
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from PIL import Image

from .errors import ConverterError, MagickNotFoundError, OptionsError
from .logsystem import LogSystem, default_log_system

QUALITY = 85
WEBP_METHOD = 6

# Optional environment override for the binary, e.g. "magick" or "/opt/im/bin/convert"
MAGICK_ENV_VAR = "IMAGE_ASSET_MAGICK"

IDENTIFY_RE = re.compile(r"([A-Za-z]+) (\d+) (\d+)")

PathLike = Union[str, Path]

@dataclass(frozen=True)
class SourceImage:
    path: Path
    type: str
    width: int
    height: int
    animated: bool = False

    @property
    def input_spec(self) -> str:
        # Read only the first frame of animated sources, otherwise jpeg output
        # is split into one file per frame.
        return f"{self.path}[0]" if self.animated else str(self.path)

@dataclass(frozen=True)
class Magick:
    bin: str = "convert"
    requires_wrapper: bool = False

    def command(self, tool: str, *args: str) -> List[str]:
        """Full argv for `tool` ("identify" or "convert")."""
        if self.requires_wrapper:
            return [self.bin, tool, *args]
        if tool == "convert":
            return [self.bin, *args]
        # Legacy ImageMagick ships identify next to convert
        base = os.path.join(os.path.dirname(self.bin), tool) if os.path.dirname(self.bin) else tool
        return [base, *args]

    def run(self, tool: str, *args: str, log: Optional[LogSystem] = None) -> str:
        log = log or default_log_system()
        cmd = self.command(tool, *args)
        cmdline = shlex.join(cmd)
        log.log(cmdline)
        try:
            proc = subprocess.run(cmd, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, text=True)
        except FileNotFoundError as e:
            raise MagickNotFoundError(f"{cmd[0]} not found, command was:\n  {cmdline}\n", command=cmd) from e
        if proc.returncode:
            raise ConverterError(
                f"{cmd[0]} failed with exit code {proc.returncode}, command was:\n  {cmdline}\n",
                returncode=proc.returncode,
                command=cmd,
            )
        return proc.stdout

    def identify(self, path: PathLike, log: Optional[LogSystem] = None) -> Tuple[str, int, int]:
        output = self.run("identify", "-format", "%m %w %h", str(path), log=log)
        m = IDENTIFY_RE.search(output)
        if not m:
            raise ConverterError(f"Could not parse identify output for {path}: {output.strip()!r}")
        return m.group(1), int(m.group(2)), int(m.group(3))

    def convert(self, src: str, dst: PathLike, width: int, webp: bool = False,
                log: Optional[LogSystem] = None) -> None:
        args = [src, "-resize", f"{width}x!", "-quality", str(QUALITY)]
        if webp:
            args += ["-define", f"webp:method={WEBP_METHOD}"]
        args.append(str(dst))
        self.run("convert", *args, log=log)

# ---------- Discovery ----------

def _version_banner(exe: str) -> Optional[str]:
    try:
        out = subprocess.run([exe, "-version"], capture_output=True, text=True)
    except OSError:
        return None
    if out.returncode != 0:
        return None
    return out.stdout + out.stderr

def find_magick(explicit: Optional[str] = None) -> Magick:
    candidates = []
    if explicit:
        candidates.append(explicit)
    if os.environ.get(MAGICK_ENV_VAR):
        candidates.append(os.environ[MAGICK_ENV_VAR])
    candidates += ["convert", "magick", "gm"]
    for exe in candidates:
        banner = _version_banner(exe)
        if banner is None:
            continue
        name = os.path.basename(exe)
        if "GraphicsMagick" in banner or "ImageMagick" in banner:
            return Magick(exe, requires_wrapper=name in ("magick", "gm"))
    raise MagickNotFoundError(
        f"Could not find ImageMagick or GraphicsMagick (tried {', '.join(candidates)}). "
        f"Install one or set {MAGICK_ENV_VAR}"
    )

# ---------- Probing ----------

def is_animated(path: Path) -> bool:
    try:
        with Image.open(path) as im:
            return bool(getattr(im, "is_animated", False)) and im.n_frames > 1
    except (OSError, ValueError):
        # Formats Pillow cannot read (svg, heic, ...) are left to the converter
        return False

def probe_image(path: PathLike, magick: Magick, asset_id: str = "image",
                log: Optional[LogSystem] = None) -> SourceImage:
    """Identify type and size of the original file; non-positive sizes are rejected."""
    log = log or default_log_system()
    path = Path(path)
    image_type, width, height = magick.identify(path, log=log)
    if width < 1 or height < 1:
        raise OptionsError(f"bad original image size {width}x{height} for {asset_id}")

    animated = is_animated(path)
    if animated:
        log.warn(f"{asset_id} is animated, only the first frame is used")
    return SourceImage(path=path, type=image_type, width=width, height=height, animated=animated)
