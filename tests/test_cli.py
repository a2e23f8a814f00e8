"""Tests for the sprite-key command line."""

import json

from click.testing import CliRunner
from PIL import Image

from sprite_key.cli import main
from sprite_key.utils.image import load_image


def test_render_image_sequence(sprite_sequence, tmp_path):
    out = tmp_path / "out"
    result = CliRunner().invoke(main, [
        "render", str(sprite_sequence), "-o", str(out), "--size", "16", "--frames", "3", "--opacity", "0.5",
    ])

    assert result.exit_code == 0, result.output
    written = sorted(out.glob("*.png"))
    assert len(written) == 3
    assert "#ffffff" in result.output

    first = load_image(written[0])
    last = load_image(written[-1])
    assert first.shape == (16, 16, 4)
    assert first[0, 0, 3] > 0        # presented before detection
    assert last[0, 0, 3] == 0
    assert last[8, 8, 3] == 128      # subject at opacity 0.5


def test_render_with_config_file(sprite_sequence, tmp_path):
    config = tmp_path / "sprite.json"
    config.write_text(json.dumps({"size": 8, "opacity": 1.0}))
    out = tmp_path / "out"

    result = CliRunner().invoke(main, [
        "render", str(sprite_sequence), "-o", str(out), "--config", str(config),
    ])

    assert result.exit_code == 0, result.output
    written = sorted(out.glob("*.png"))
    assert len(written) == 3
    with Image.open(written[0]) as img:
        assert img.size == (8, 8)


def test_render_rejects_bad_tolerance(sprite_sequence, tmp_path):
    result = CliRunner().invoke(main, [
        "render", str(sprite_sequence), "-o", str(tmp_path / "out"), "--tolerance", "300",
    ])
    assert result.exit_code == 1
    assert "tolerance" in result.output


def test_detect(sprite_sequence):
    result = CliRunner().invoke(main, ["detect", str(sprite_sequence), "--size", "32"])
    assert result.exit_code == 0, result.output
    assert "#ffffff" in result.output


def test_detect_gives_up(sprite_sequence):
    result = CliRunner().invoke(main, ["detect", str(sprite_sequence), "--max-frames", "1"])
    assert result.exit_code == 1
    assert "No background detected" in result.output


def test_preview(sprite_sequence, tmp_path):
    out = tmp_path / "preview.png"
    result = CliRunner().invoke(main, [
        "preview", str(sprite_sequence), "-o", str(out), "--size", "32",
        "--backdrop", "#0000ff", "--opacity", "1.0",
    ])

    assert result.exit_code == 0, result.output
    pixels = load_image(out)
    assert pixels[0, 0, :3].tolist() == [0, 0, 255]
    assert pixels[16, 16, :3].tolist() == [0, 0, 0]
