import re

import pytest

from image_asset import Asset, ConverterError, OptionsError, import_asset
from image_asset.magick import SourceImage
from image_asset.options import resolve_options
from image_asset.variants import (
    density_label,
    display_size,
    generate_variants,
    output_width,
    variant_filename,
)

@pytest.mark.parametrize("density,label", [
    (1, "1x"),
    (1.0, "1x"),
    (2.5, "2.5x"),
    (0.75, "0.75x"),
    (1.25, "1.25x"),
    (10, "10x"),
    (1.0004, "1x"),
])
def test_density_label(density, label):
    assert density_label(density) == label

def test_output_width():
    assert output_width(1000, 2, 1) == 500
    assert output_width(1000, 2, 2) == 1000
    assert output_width(999, 2, 1) == 500
    assert output_width(333, 1, 0.5) == 167

def test_output_width_scales_linearly():
    assert output_width(800, 3, 2) == 2 * output_width(800, 3, 1)

def test_display_size():
    source = SourceImage(path=None, type="JPEG", width=1001, height=601)
    assert display_size(resolve_options(""), source) == (501, 301)
    assert display_size(resolve_options("displayWidth=400"), source) == (400, 301)

def test_variant_filename():
    assert variant_filename("hero", "1.5x", "webp") == "hero-1.5x.webp"

def test_import_both_formats(fake_run, context, magick, log, source_file):
    result = import_asset(Asset(source_file, "hero.jpg"), context, magick=magick, log=log)

    converts = fake_run.converts
    assert [c[c.index("-resize") + 1] for c in converts] == ["500x!", "500x!", "1000x!", "1000x!"]
    assert [c[-1].rsplit(".", 1)[1] for c in converts] == ["webp", "jpeg", "webp", "jpeg"]
    assert converts[0][-1].endswith("hero-1x.webp")
    assert converts[3][-1].endswith("hero-2x.jpeg")
    assert converts[0][1:6] == [str(source_file), "-resize", "500x!", "-quality", "85"]
    assert "webp:method=6" in converts[0]
    assert "webp:method=6" not in converts[1]

    webp = result.webp_src_set.split(", ")
    jpeg = result.jpeg_src_set.split(", ")
    assert [e.rsplit(" ", 1)[1] for e in webp] == ["1x", "2x"]
    assert all(re.match(r"^/asset/hero-\d+x\.[0-9a-f]{16}\.webp \d+x$", e) for e in webp)
    assert result.default_src == jpeg[-1].split(" ")[0]
    assert result.css == "width: 500px; height: 300px"
    assert (result.display_width, result.display_height) == (500, 300)

def test_identify_runs_before_conversion(fake_run, context, magick, log, messages, source_file):
    import_asset(Asset(source_file, "hero.jpg"), context, magick=magick, log=log)
    assert fake_run.calls[0] == ["identify", "-format", "%m %w %h", str(source_file)]
    assert messages["log"][0] == f"identify -format '%m %w %h' {source_file}"
    assert messages["log"][1].startswith(f"convert {source_file} -resize '500x!' -quality 85 -define webp:method=6 ")

def test_default_src_is_webp_without_fallback(fake_run, context, magick, log, source_file):
    result = import_asset(Asset(source_file, "hero.jpg", "fallback=false"), context, magick=magick, log=log)
    assert result.jpeg_src_set == ""
    assert result.default_src == result.webp_src_set.split(", ")[-1].split(" ")[0]
    assert result.default_src.endswith(".webp")

def test_jpeg_only(fake_run, context, magick, log, source_file):
    result = import_asset(Asset(source_file, "hero.jpg", "webp=false&dstDensity=1"), context, magick=magick, log=log)
    assert result.webp_src_set == ""
    assert len(fake_run.converts) == 1
    assert result.default_src.endswith(".jpeg")

def test_files_are_persisted_and_work_dir_removed(fake_run, context, magick, log, source_file):
    result = import_asset(Asset(source_file, "hero.jpg"), context, magick=magick, log=log)
    names = sorted(p.name for p in context.dst_asset_dir.iterdir())
    assert len(names) == 4
    assert all(not n.startswith(".work-") for n in names)
    assert sorted(v.uri.rsplit("/", 1)[1] for v in result.variants) == names

def test_zero_size_fails_before_conversion(fake_run, context, magick, log, source_file):
    fake_run.identify_output = "JPEG 0 600"
    with pytest.raises(OptionsError, match="bad original image size 0x600 for hero.jpg"):
        import_asset(Asset(source_file, "hero.jpg"), context, magick=magick, log=log)
    assert fake_run.converts == []

def test_converter_failure_aborts(fake_run, context, magick, log, source_file):
    fake_run.fail_on = "hero-2x.webp"
    fake_run.returncode = 3
    with pytest.raises(ConverterError) as exc:
        import_asset(Asset(source_file, "hero.jpg"), context, magick=magick, log=log)
    assert exc.value.returncode == 3
    assert "exit code 3" in str(exc.value)
    assert "hero-2x.webp" in str(exc.value)
    # nothing after the failing command
    assert fake_run.calls[-1][-1].endswith("hero-2x.webp")
    assert not [p for p in context.dst_asset_dir.iterdir() if p.name.startswith(".work-")]

def test_bad_options_fail_before_probe(fake_run, context, magick, log, source_file):
    with pytest.raises(OptionsError):
        import_asset(Asset(source_file, "hero.jpg", "srcDensity=1&dstDensity=2"), context, magick=magick, log=log)
    assert fake_run.calls == []

def test_missing_source(fake_run, context, magick, log, tmp_path):
    with pytest.raises(FileNotFoundError):
        import_asset(Asset(tmp_path / "nope.jpg", "nope.jpg"), context, magick=magick, log=log)

def test_generate_variants_with_dense_source(fake_run, context, magick, log, tmp_path):
    source = SourceImage(path=tmp_path / "logo.png", type="PNG", width=900, height=300)
    options = resolve_options("srcDensity=3&dstDensity=1&dstDensity=1.5&dstDensity=3")
    result = generate_variants(options, source, context, magick, log=log)
    assert [v.width for v in result.variants if v.format == "webp"] == [300, 450, 900]
    assert [e.split(" ")[1] for e in result.jpeg_src_set.split(", ")] == ["1x", "1.5x", "3x"]
    assert result.css == "width: 300px; height: 100px"
