"""
Markup for imported images.

`render_module` produces the text the build pipeline imports
(``export default {...}``). `render_picture` renders the equivalent
<picture> element directly, for templates that are plain HTML.
"""

import html
import json
from typing import Any, Dict, List, Union

from .variants import ResultDescriptor

def render_module(descriptor: ResultDescriptor) -> str:
    return "export default " + json.dumps(descriptor.to_dict(), separators=(",", ":"))

def _attrs(pairs: Dict[str, Any]) -> str:
    parts: List[str] = []
    for name, value in pairs.items():
        if value is None or value is False:
            continue
        if value is True:
            parts.append(name)
        else:
            parts.append(f'{name}="{html.escape(str(value), quote=True)}"')
    return " ".join(parts)

def _img(attrs: Dict[str, Any]) -> str:
    return f"<img {_attrs(attrs)} />"

def render_picture(asset: Union[str, ResultDescriptor], **attrs) -> str:
    """
    Render an <img>/<picture> for `asset`.

    A plain string is treated like an ordinary src. Extra keyword arguments
    become attributes of the <img> (alt, class_, loading, ...); a trailing
    underscore is dropped so reserved words can be passed.
    """
    extra = {k.rstrip("_").replace("_", "-"): v for k, v in attrs.items()}

    if isinstance(asset, str):
        return _img({"src": asset, **extra})

    sizes = f"{asset.display_width}px"
    lines = ["<picture>"]
    if asset.webp_src_set:
        lines.append("  <source " + _attrs({"srcset": asset.webp_src_set, "type": "image/webp", "sizes": sizes}) + " />")

    img_attrs: Dict[str, Any] = {"style": asset.css}
    if asset.jpeg_src_set:
        img_attrs.update({"srcset": asset.jpeg_src_set, "sizes": sizes})
    img_attrs["src"] = asset.default_src
    # Always the generated default, never a caller supplied src
    extra.pop("src", None)
    img_attrs.update(extra)
    lines.append("  " + _img(img_attrs))
    lines.append("</picture>")
    return "\n".join(lines)
