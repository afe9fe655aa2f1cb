"""
Output side of an import: where variants are written and how they are named.

Variants are rendered into a throwaway working directory, then moved into
the asset directory under a name derived from their content, so repeated
builds of the same image produce the same URIs.
"""

import hashlib
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

HASH_LENGTH = 16
DEFAULT_URI_PREFIX = "/asset/"

def file_digest(path: Path, chunk_size: int = 1 << 16) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()

class AssetContext:
    def __init__(self, dst_asset_dir: Union[str, Path], uri_prefix: str = DEFAULT_URI_PREFIX):
        self.dst_asset_dir = Path(dst_asset_dir)
        self.uri_prefix = uri_prefix if uri_prefix.endswith("/") else uri_prefix + "/"

    @contextmanager
    def working_dir(self) -> Iterator[Path]:
        self.dst_asset_dir.mkdir(parents=True, exist_ok=True)
        # Inside the asset dir so the final move is a rename on one filesystem
        with tempfile.TemporaryDirectory(prefix=".work-", dir=self.dst_asset_dir) as tmp:
            yield Path(tmp)

    def hash_and_rename_file(self, path: Union[str, Path]) -> str:
        """Move `path` into the asset dir as <stem>.<hash><suffix> and return that name."""
        path = Path(path)
        digest = file_digest(path)[:HASH_LENGTH]
        hashed_name = f"{path.stem}.{digest}{path.suffix}"
        target = self.dst_asset_dir / hashed_name
        self.dst_asset_dir.mkdir(parents=True, exist_ok=True)
        try:
            os.replace(path, target)
        except OSError:
            # Different filesystem
            shutil.move(str(path), str(target))
        return hashed_name

    def uri_for(self, filename: str) -> str:
        return f"{self.uri_prefix}{filename}"
