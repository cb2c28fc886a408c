from pathlib import Path

import pytest

from ktxgen import cli
from ktxgen.models import ALL_FORMATS, InvocationResult, TextureFormat, TextureQuality


def test_parse_defaults():
    args = cli.parse_args(["textures"])
    assert args.input_dir == Path("textures")
    assert args.quality is TextureQuality.HIGH
    assert args.formats == ALL_FORMATS
    assert args.run_async is False
    assert args.alpha_probe == "header"


def test_parse_formats_and_quality():
    args = cli.parse_args(["in", "--formats", "astc,pvrtc", "--quality", "LOW", "--async"])
    assert args.formats == (TextureFormat.PVRTC, TextureFormat.ASTC)
    assert args.quality is TextureQuality.LOW
    assert args.run_async is True


def test_parse_rejects_unknown_format():
    with pytest.raises(SystemExit):
        cli.parse_args(["in", "--formats", "BC7"])


def test_missing_compressor(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "find_compressor", lambda explicit=None: None)
    assert cli.main([str(tmp_path)]) == 2


def test_exit_status_reflects_failures(monkeypatch, tmp_path):
    captured = []

    def fake_generate(request, policy=None):
        captured.append(request)
        return [
            InvocationResult("a", TextureFormat.ETC2, Path("a-etc2.ktx"), 0),
            InvocationResult("b", TextureFormat.ASTC, Path("a-astc.ktx"), 1),
        ]

    monkeypatch.setattr(cli, "generate_textures", fake_generate)
    assert cli.main([str(tmp_path), "--compressor", "/opt/PVRTexToolCLI"]) == 1
    assert captured[0].compressor == "/opt/PVRTexToolCLI"
    assert captured[0].input_dir == tmp_path


def test_async_run_exits_cleanly(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "generate_textures", lambda request, policy=None: [])
    assert cli.main([str(tmp_path), "--compressor", "tool", "--async"]) == 0


def test_async_walk_failure_exits_nonzero(tmp_path, caplog):
    assert cli.main([str(tmp_path / "missing"), "--compressor", "tool", "--async"]) == 1
    assert "missing" in caplog.text


def test_blocking_walk_failure_propagates(tmp_path):
    with pytest.raises(FileNotFoundError):
        cli.main([str(tmp_path / "missing"), "--compressor", "tool"])
