import subprocess
from pathlib import Path

import pytest
from PIL import Image

from image_asset import AssetContext, LogSystem, Magick

class FakeMagick:
    """Stands in for subprocess.run: answers identify, writes convert outputs."""

    def __init__(self, identify_output="JPEG 1000 600"):
        self.identify_output = identify_output
        self.calls = []
        self.fail_on = None
        self.returncode = 1
        self.version_banner = "Version: ImageMagick 6.9.11-60 Q16 x86_64"

    def __call__(self, cmd, **kwargs):
        cmd = list(cmd)
        self.calls.append(cmd)
        if "-version" in cmd:
            return subprocess.CompletedProcess(cmd, 0, stdout=self.version_banner, stderr="")
        if self.fail_on and self.fail_on in " ".join(cmd):
            return subprocess.CompletedProcess(cmd, self.returncode, stdout="", stderr="")
        if "identify" in cmd[0] or (len(cmd) > 1 and cmd[1] == "identify"):
            return subprocess.CompletedProcess(cmd, 0, stdout=self.identify_output, stderr="")
        Path(cmd[-1]).write_text(" ".join(cmd[1:-1]), encoding="utf-8")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    @property
    def converts(self):
        return [c for c in self.calls if "-resize" in c]

@pytest.fixture
def fake_run(monkeypatch):
    fake = FakeMagick()
    monkeypatch.setattr("image_asset.magick.subprocess.run", fake)
    return fake

@pytest.fixture
def messages():
    return {"log": [], "warn": []}

@pytest.fixture
def log(messages):
    return LogSystem(log=messages["log"].append, warn=messages["warn"].append)

@pytest.fixture
def magick():
    return Magick("convert")

@pytest.fixture
def context(tmp_path):
    return AssetContext(tmp_path / "asset")

@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "hero.jpg"
    Image.new("RGB", (1000, 600), (200, 40, 40)).save(path, "JPEG")
    return path
