from pathlib import Path

import pytest

pytest.importorskip("PySide6")

from ktxgen import app
from ktxgen.models import ConversionRequest, InvocationResult, TextureFormat


def test_worker_emits_results(monkeypatch, tmp_path):
    result = InvocationResult("cmd", TextureFormat.ETC2, Path("x-etc2.ktx"), 0)
    monkeypatch.setattr(app, "generate_textures", lambda request, policy=None: [result])
    worker = app.ConvertWorker(ConversionRequest(compressor="tool", input_dir=tmp_path))
    received = []
    worker.finished.connect(received.append)
    worker.run()
    assert received == [[result]]


def test_worker_reports_walk_errors(tmp_path):
    worker = app.ConvertWorker(ConversionRequest(compressor="tool", input_dir=tmp_path / "missing"))
    finished = []
    failed = []
    worker.finished.connect(finished.append)
    worker.failed.connect(failed.append)
    worker.run()
    assert finished == []
    assert len(failed) == 1
    assert "missing" in failed[0]


def test_worker_keeps_mode_it_started_with(tmp_path):
    worker = app.ConvertWorker(
        ConversionRequest(compressor="tool", input_dir=tmp_path, run_async=True)
    )
    assert worker.run_async is True
