from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg"}
CUBE_FACE_SUFFIXES = ("_px", "_nx", "_py", "_ny", "_pz", "_nz")


class TextureFormat(str, Enum):
    PVRTC = "PVRTC"
    ETC1 = "ETC1"
    ETC2 = "ETC2"
    ASTC = "ASTC"
    DXT = "DXT"


class TextureQuality(str, Enum):
    HIGH = "high"
    LOW = "low"


ALL_FORMATS = tuple(TextureFormat)


@dataclass(frozen=True)
class ConversionRequest:
    compressor: str
    input_dir: Path
    quality: TextureQuality = TextureQuality.HIGH
    formats: tuple[TextureFormat, ...] = ALL_FORMATS
    run_async: bool = False
    alpha_probe: str = "header"
    clean: bool = False


@dataclass(frozen=True)
class ImageSource:
    files: tuple[Path, ...]
    is_cube: bool = False

    @property
    def path(self) -> Path:
        return self.files[0]


@dataclass(frozen=True)
class ImageJob:
    files: tuple[Path, ...]
    has_alpha: bool
    is_cube: bool = False

    @property
    def file_argument(self) -> str:
        return ",".join(str(path) for path in self.files)

    @property
    def output_base(self) -> str:
        first = str(self.files[0])
        if self.is_cube:
            marker = f"{CUBE_FACE_SUFFIXES[0]}{self.files[0].suffix}"
            return first[: len(first) - len(marker)]
        return os.path.splitext(first)[0]


@dataclass(frozen=True)
class InvocationResult:
    command: str
    texture_format: TextureFormat
    output: Path
    returncode: int | None = None
    stderr: str = field(default="", compare=False)

    @property
    def success(self) -> bool:
        return self.returncode is None or self.returncode == 0


def parse_formats(values: str | list[str]) -> tuple[TextureFormat, ...]:
    if isinstance(values, str):
        values = [item.strip() for item in values.split(",") if item.strip()]
    if not values or [value.lower() for value in values] == ["all"]:
        return ALL_FORMATS
    requested = set()
    unknown = []
    for value in values:
        try:
            requested.add(TextureFormat(value.upper()))
        except ValueError:
            unknown.append(value)
    if unknown:
        raise ValueError(f"未知纹理格式：{', '.join(unknown)}")
    return tuple(fmt for fmt in ALL_FORMATS if fmt in requested)


def parse_quality(value: str | TextureQuality) -> TextureQuality:
    try:
        return TextureQuality(str(getattr(value, "value", value)).lower())
    except ValueError:
        raise ValueError(f"未知压缩质量：{value}") from None
