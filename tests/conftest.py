from __future__ import annotations

import struct
from pathlib import Path

import pytest

from ktxgen.convert import BlockingPolicy

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def write_png_header(path: Path, color_type: int = 2) -> Path:
    ihdr = struct.pack(">IIBBBBB", 4, 4, 8, color_type, 0, 0, 0)
    path.write_bytes(PNG_SIGNATURE + struct.pack(">I", len(ihdr)) + b"IHDR" + ihdr + b"\x00" * 4)
    return path


class RecordingPolicy(BlockingPolicy):
    def __init__(self, returncode: int = 0) -> None:
        self.commands: list[str] = []
        self.returncode = returncode

    def run_command(self, command: str) -> tuple[int | None, str]:
        self.commands.append(command)
        return self.returncode, "boom" if self.returncode else ""


@pytest.fixture
def recorder() -> RecordingPolicy:
    return RecordingPolicy()


@pytest.fixture
def not_macos(monkeypatch):
    monkeypatch.setattr("ktxgen.convert.detect_platform", lambda: "linux")
