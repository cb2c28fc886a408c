from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Iterator

from .cubemap import find_cube_faces, is_cube_face, is_first_face
from .models import IMAGE_EXTENSIONS, ImageSource

logger = logging.getLogger(__name__)

OUTPUT_EXTENSION = ".ktx"


def iter_images(root: Path, clean: bool = False) -> Iterator[ImageSource]:
    """Yield every convertible image under ``root``, depth-first by name.

    Cube face sets are yielded once, from their ``_px`` face. Any error
    listing or stating an entry propagates to the caller.
    """
    root = Path(root)
    names = sorted(os.listdir(root))
    if clean:
        names = remove_outputs(root, names)
    for name in names:
        path = root / name
        mode = os.stat(path).st_mode
        if stat.S_ISDIR(mode):
            yield from iter_images(path, clean)
            continue
        source = classify_image(path)
        if source is not None:
            yield source


def classify_image(path: Path) -> ImageSource | None:
    if path.suffix.lower() not in IMAGE_EXTENSIONS:
        return None
    if not is_cube_face(path):
        return ImageSource((path,))
    faces = find_cube_faces(path)
    if faces is None:
        logger.debug("立方体贴图缺少面，已跳过：%s", path)
        return None
    if not is_first_face(path):
        return None
    return ImageSource(faces, is_cube=True)


def remove_outputs(directory: Path, names: list[str]) -> list[str]:
    """Delete the .ktx files among ``names`` and return the names left over."""
    remaining = []
    for name in names:
        path = directory / name
        if name.lower().endswith(OUTPUT_EXTENSION) and path.is_file():
            logger.info("删除旧纹理 %s", path)
            path.unlink()
        else:
            remaining.append(name)
    return remaining
