"""
Import option resolution.

Options come from a fixed set of defaults, optionally overridden by a JSON
defaults file, and finally by the query string appended to an import
reference (e.g. ``hero.jpg?srcDensity=3&webp=false``).

After merging, a blunt pass turns every ``""`` into ``True`` and every
``"false"`` into ``False``. The pass does not look at the key, so a numeric
option written as ``displayWidth=false`` ends up as ``False`` (treated as 0).
"""

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import parse_qs

from .errors import OptionsError
from .logsystem import LogSystem, default_log_system

FALLBACK_FORMATS = ("jpeg",)

DEFAULT_OPTIONS: Dict[str, Any] = {
    "fallback": "jpeg",
    "webp": True,
    "displayWidth": 0,    # destination page px, 0 to derive from source size and srcDensity
    "displayHeight": 0,
    "srcDensity": 2,
    "dstDensity": [1, 2],  # 100% and 200% desktop scaling
}

@dataclass(frozen=True)
class Options:
    fallback: Any
    webp: bool
    display_width: int
    display_height: int
    src_density: float
    dst_density: Tuple[float, ...]

# ---------- Decoding and merging ----------

def decode_options(options_string: Optional[str]) -> Dict[str, Any]:
    """Decode a query string; repeated keys give a list, blank values are kept."""
    if not options_string:
        return {}
    parsed = parse_qs(options_string.lstrip("?"), keep_blank_values=True)
    return {k: (v[0] if len(v) == 1 else v) for k, v in parsed.items()}

def merge_options(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(defaults)
    merged.update(overrides)
    return merged

def coerce_flags(options: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in options.items():
        if value == "":
            out[key] = True
        elif value == "false":
            out[key] = False
        else:
            out[key] = value
    return out

def load_defaults(path: Path) -> Dict[str, Any]:
    """
    Read default overrides from a JSON object, e.g.
      {"srcDensity": 3, "dstDensity": [1, 1.5, 2, 3]}
    A missing file means no overrides.
    """
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise OptionsError(f"Invalid defaults file {path}: {e}") from e
    if not isinstance(data, dict):
        raise OptionsError(f"Defaults file {path} must contain a JSON object")
    return data

# ---------- Validation ----------

def _parse_float(value: Any, key: str, asset_id: str) -> float:
    if isinstance(value, bool):
        raise OptionsError(f"{key} for {asset_id} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise OptionsError(f"{key} for {asset_id} must be a number, got {value!r}")
    if math.isnan(number):
        raise OptionsError(f"{key} for {asset_id} must be a number, got {value!r}")
    return number

def _parse_display_size(value: Any, key: str, asset_id: str) -> int:
    if value is False or value is None:
        return 0
    number = _parse_float(value, key, asset_id)
    if number < 0 or math.isinf(number) or number != int(number):
        raise OptionsError(f"{key} for {asset_id} must be a whole number >= 0, got {value!r}")
    return int(number)

def _density_entries(value: Any) -> List[Any]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        entries: List[Any] = []
        for item in value:
            entries.extend(_density_entries(item) if isinstance(item, str) else [item])
        return entries
    return [value]

def filter_densities(src_density: float, requested: Sequence[Any], asset_id: str = "image",
                     log: Optional[LogSystem] = None) -> Tuple[float, ...]:
    """
    Parse destination densities and keep those the source can serve.

    Non-numeric and non-positive values are skipped with a warning. Values
    above src_density are dropped without one; the defaults include 2x, which
    would otherwise warn for every 1x source. The result is sorted ascending.
    """
    log = log or default_log_system()
    accepted: List[float] = []
    for raw in requested:
        try:
            density = _parse_float(raw, "dstDensity", asset_id)
        except OptionsError:
            density = math.nan
        if not density > 0:
            log.warn(f"Ignoring dstDensity {raw!r} for {asset_id}, densities must be numbers > 0")
            continue
        if density <= src_density:
            accepted.append(density)

    if not accepted:
        raise OptionsError(f"No accepted dstDensity for {asset_id} (srcDensity {src_density:g})")

    return tuple(sorted(accepted))

def resolve_options(
    options_string: Optional[str],
    defaults: Optional[Dict[str, Any]] = None,
    asset_id: str = "image",
    log: Optional[LogSystem] = None,
) -> Options:
    base = merge_options(DEFAULT_OPTIONS, defaults or {})
    raw = merge_options(base, decode_options(options_string))
    raw = coerce_flags(raw)

    src_density = _parse_float(raw["srcDensity"], "srcDensity", asset_id)
    if not (0 < src_density < math.inf):
        raise OptionsError(f"srcDensity for {asset_id} must be > 0, got {raw['srcDensity']!r}")

    fallback = raw["fallback"]
    if fallback is not False and fallback not in FALLBACK_FORMATS:
        raise OptionsError(f"Unsupported fallback {fallback!r} for {asset_id}, expected one of {FALLBACK_FORMATS} or false")
    if fallback is False and not raw["webp"]:
        raise OptionsError(f"No output format enabled for {asset_id}, both webp and fallback are off")

    return Options(
        fallback=fallback,
        webp=bool(raw["webp"]),
        display_width=_parse_display_size(raw["displayWidth"], "displayWidth", asset_id),
        display_height=_parse_display_size(raw["displayHeight"], "displayHeight", asset_id),
        src_density=src_density,
        dst_density=filter_densities(src_density, _density_entries(raw["dstDensity"]), asset_id, log=log),
    )
