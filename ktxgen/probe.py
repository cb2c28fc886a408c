from __future__ import annotations

from pathlib import Path
from typing import Callable

from PIL import Image

PNG_COLOR_TYPE_OFFSET = 25
PNG_COLOR_TYPE_RGBA = 6
_PROBE_REGISTRY: dict[str, Callable[[Path], bool]] = {}


def probe_png_header(path: Path) -> bool:
    """Read the IHDR color type byte of a PNG; type 6 is truecolor with alpha.

    Nothing else in the file is validated, so a malformed or truncated file
    simply reports no alpha.
    """
    with open(path, "rb") as handle:
        handle.seek(PNG_COLOR_TYPE_OFFSET)
        data = handle.read(1)
    return len(data) == 1 and data[0] == PNG_COLOR_TYPE_RGBA


def probe_png_decode(path: Path) -> bool:
    with Image.open(path) as image:
        if image.mode in {"RGBA", "LA", "PA", "RGBa", "La"}:
            return True
        return "transparency" in image.info


def get_probe_registry() -> dict[str, Callable[[Path], bool]]:
    global _PROBE_REGISTRY
    if not _PROBE_REGISTRY:
        _PROBE_REGISTRY = {
            "header": probe_png_header,
            "decode": probe_png_decode,
        }
    return _PROBE_REGISTRY


def set_probe_registry(registry: dict[str, Callable[[Path], bool]]) -> None:
    global _PROBE_REGISTRY
    _PROBE_REGISTRY = dict(registry)


def get_alpha_probe(name: str) -> Callable[[Path], bool]:
    registry = get_probe_registry()
    probe = registry.get(name)
    if probe is None:
        raise ValueError(f"未知透明度检测方式：{name}（可选 {', '.join(registry)}）")
    return probe


def has_alpha(path: Path, probe_name: str = "header") -> bool:
    if path.suffix.lower() != ".png":
        return False
    return get_alpha_probe(probe_name)(path)
