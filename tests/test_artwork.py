import tempfile
import unittest
from pathlib import Path
from typing import Optional

from audio_catalog.artwork import CoverArtLocator
from audio_catalog.tagging import TagReader, TagReadError


class _PictureReader(TagReader):
    def __init__(self, path: Path, front: Optional[bytes] = None, others: Optional[list[bytes]] = None) -> None:
        super().__init__(path, tags=None, info=None)
        self._front = front
        self._others = others or []

    def basic(self, field: str) -> Optional[str]:
        return None

    def property(self, name: str) -> Optional[str]:
        return None

    def front_cover(self) -> Optional[bytes]:
        return self._front

    def attached_pictures(self) -> list[bytes]:
        return list(self._others)


def _factory(pictures: dict[str, tuple[Optional[bytes], list[bytes]]]):
    def _open(path: Path) -> TagReader:
        if path.name not in pictures:
            raise TagReadError(f"no tags in {path}")
        front, others = pictures[path.name]
        return _PictureReader(path, front, others)

    return _open


class TestCoverArtLocator(unittest.TestCase):
    def test_embedded_front_cover_beats_sidecar(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            (folder / "cover.jpg").write_bytes(b"sidecar")
            files = [folder / "01.mp3", folder / "02.mp3"]
            locator = CoverArtLocator(reader_factory=_factory({"01.mp3": (None, []), "02.mp3": (b"embedded", [])}))
            self.assertEqual(locator.locate(folder, files), b"embedded")

    def test_any_attached_picture_is_used_when_no_front_cover(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            files = [folder / "01.flac"]
            locator = CoverArtLocator(reader_factory=_factory({"01.flac": (None, [b"", b"back"])}))
            self.assertEqual(locator.locate(folder, files), b"back")

    def test_sidecar_name_order_and_case(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            (folder / "Folder.JPG").write_bytes(b"folder")
            (folder / "front.png").write_bytes(b"front")
            locator = CoverArtLocator(reader_factory=_factory({}))
            self.assertEqual(locator.locate(folder, [folder / "01.mp3"]), b"folder")

            (folder / "COVER.jpeg").write_bytes(b"cover")
            self.assertEqual(locator.locate(folder, [folder / "01.mp3"]), b"cover")

    def test_empty_sidecar_is_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            (folder / "cover.jpg").write_bytes(b"")
            (folder / "album.png").write_bytes(b"album")
            locator = CoverArtLocator(reader_factory=_factory({}))
            self.assertEqual(locator.locate(folder, []), b"album")

    def test_custom_sidecar_names(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            (folder / "cover.jpg").write_bytes(b"cover")
            (folder / "scan.jpg").write_bytes(b"scan")
            locator = CoverArtLocator(sidecar_names=["scan.jpg"], reader_factory=_factory({}))
            self.assertEqual(locator.locate(folder, []), b"scan")

    def test_no_artwork(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            (folder / "notes.txt").write_text("liner notes", encoding="utf-8")
            locator = CoverArtLocator(reader_factory=_factory({"01.mp3": (None, [])}))
            self.assertIsNone(locator.locate(folder, [folder / "01.mp3"]))

    def test_missing_folder(self) -> None:
        locator = CoverArtLocator(reader_factory=_factory({}))
        self.assertIsNone(locator.locate(Path("/this/path/does/not/exist"), []))


if __name__ == "__main__":
    unittest.main()
