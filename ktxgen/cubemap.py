from __future__ import annotations

from pathlib import Path

from .models import CUBE_FACE_SUFFIXES


def face_suffix(path: Path) -> str | None:
    stem = path.stem
    for suffix in CUBE_FACE_SUFFIXES:
        if stem.endswith(suffix):
            return suffix
    return None


def is_cube_face(path: Path) -> bool:
    return face_suffix(path) is not None


def is_first_face(path: Path) -> bool:
    return face_suffix(path) == CUBE_FACE_SUFFIXES[0]


def find_cube_faces(path: Path) -> tuple[Path, ...] | None:
    """Return the six faces of the cubemap ``path`` belongs to, +X first.

    ``None`` when ``path`` carries no face suffix or any sibling face is
    missing from its directory.
    """
    suffix = face_suffix(path)
    if suffix is None:
        return None
    base = path.stem[: len(path.stem) - len(suffix)]
    faces = []
    for face in CUBE_FACE_SUFFIXES:
        candidate = path.with_name(f"{base}{face}{path.suffix}")
        if not candidate.exists():
            return None
        faces.append(candidate)
    return tuple(faces)
