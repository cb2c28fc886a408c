from pathlib import Path

from ktxgen.cubemap import find_cube_faces, is_cube_face, is_first_face
from ktxgen.models import CUBE_FACE_SUFFIXES


def make_faces(directory: Path, base: str = "sky", ext: str = ".png", skip: str | None = None):
    for suffix in CUBE_FACE_SUFFIXES:
        if suffix != skip:
            (directory / f"{base}{suffix}{ext}").write_bytes(b"")


def test_full_set_in_face_order(tmp_path):
    make_faces(tmp_path)
    faces = find_cube_faces(tmp_path / "sky_nz.png")
    assert [face.name for face in faces] == [
        "sky_px.png",
        "sky_nx.png",
        "sky_py.png",
        "sky_ny.png",
        "sky_pz.png",
        "sky_nz.png",
    ]


def test_missing_face(tmp_path):
    make_faces(tmp_path, skip="_ny")
    assert find_cube_faces(tmp_path / "sky_px.png") is None


def test_plain_file_is_not_a_face(tmp_path):
    (tmp_path / "sky.png").write_bytes(b"")
    assert find_cube_faces(tmp_path / "sky.png") is None
    assert not is_cube_face(tmp_path / "sky.png")


def test_keeps_extension_case(tmp_path):
    make_faces(tmp_path, ext=".JPG")
    faces = find_cube_faces(tmp_path / "sky_px.JPG")
    assert faces[-1].name == "sky_nz.JPG"


def test_first_face():
    assert is_first_face(Path("a/sky_px.png"))
    assert not is_first_face(Path("a/sky_nx.png"))
    assert not is_first_face(Path("a/sky_px_old.png"))
