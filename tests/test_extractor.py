import unittest
from pathlib import Path
from typing import Optional

from audio_catalog import meta_keys as keys
from audio_catalog.extractor import MetadataExtractor, first_present
from audio_catalog.heuristics import FilenameGuess, guess_from_filename
from audio_catalog.tagging import TagReader, TagReadError


class _StubReader(TagReader):
    def __init__(self, path: Path, basic=None, props=None, length: Optional[float] = None) -> None:
        super().__init__(path, tags=None, info=None)
        self._basic = basic or {}
        self._props = props or {}
        self._length = length

    @property
    def duration(self) -> Optional[float]:
        return self._length

    def basic(self, field: str) -> Optional[str]:
        return self._basic.get(field)

    def property(self, name: str) -> Optional[str]:
        return self._props.get(name)

    def front_cover(self) -> Optional[bytes]:
        return None


class TestFirstPresent(unittest.TestCase):
    def test_returns_first_non_empty_and_is_lazy(self) -> None:
        calls: list[str] = []

        def provider(name: str, value):
            def _inner():
                calls.append(name)
                return value

            return _inner

        result = first_present(provider("a", None), provider("b", "  "), provider("c", "hit"), provider("d", "late"))
        self.assertEqual(result, "hit")
        self.assertEqual(calls, ["a", "b", "c"])

    def test_all_missing(self) -> None:
        self.assertIsNone(first_present(lambda: None, lambda: ""))


class TestMetadataExtractor(unittest.TestCase):
    def test_reads_full_record(self) -> None:
        path = Path("/music/Portishead - Dummy/03 - Strangers.flac")
        reader = _StubReader(
            path,
            basic={keys.TITLE: "Strangers", keys.ARTIST: "Portishead", keys.ALBUM: "Dummy", keys.YEAR: "1994", keys.TRACK: "9"},
            props={
                keys.TRACKNUMBER: "3/11",
                keys.DISCNUMBER: "1/1",
                keys.TITLESORT: "Strangers",
                keys.ALBUMARTIST: "Portishead",
                keys.ALBUMARTISTSORT: "Portishead",
                keys.ORIGINALDATE: "1994-08-22",
                keys.MUSICBRAINZ_TRACKID: "trk",
                keys.MUSICBRAINZ_ALBUMID: "alb",
            },
            length=238.4,
        )
        raw = MetadataExtractor(reader_factory=lambda p: reader).read(path)
        assert raw is not None
        self.assertEqual(raw.title, "Strangers")
        self.assertEqual(raw.artist, "Portishead")
        self.assertEqual(raw.album_title, "Dummy")
        self.assertEqual(raw.track_number, 3)
        self.assertEqual(raw.disc_number, 1)
        self.assertEqual(raw.year, "1994")
        self.assertEqual(raw.original_year, "1994-08-22")
        self.assertEqual(raw.duration, 238.4)
        self.assertFalse(raw.is_compilation)
        self.assertEqual(raw.external_ids, {"musicbrainz_track_id": "trk", "musicbrainz_album_id": "alb"})

    def test_falls_back_to_basic_then_filename(self) -> None:
        path = Path("/music/Album/07 - Untitled Song.mp3")
        reader = _StubReader(path, basic={keys.TRACK: "5"})
        raw = MetadataExtractor(reader_factory=lambda p: reader).read(path)
        assert raw is not None
        self.assertEqual(raw.title, "Untitled Song")
        self.assertEqual(raw.track_number, 5)
        self.assertIsNone(raw.artist)
        self.assertIsNone(raw.album_title)
        self.assertEqual(raw.duration, 0.0)

        bare = _StubReader(path)
        raw = MetadataExtractor(reader_factory=lambda p: bare).read(path)
        assert raw is not None
        self.assertEqual(raw.track_number, 7)

    def test_title_defaults_to_stem(self) -> None:
        path = Path("/music/Album/intro.ogg")
        raw = MetadataExtractor(reader_factory=lambda p: _StubReader(p)).read(path)
        assert raw is not None
        self.assertEqual(raw.title, "intro")
        self.assertIsNone(raw.track_number)

    def test_original_year_prefers_originalyear(self) -> None:
        path = Path("/music/a.flac")
        reader = _StubReader(path, props={keys.ORIGINALYEAR: "1971", keys.ORIGINALDATE: "1971-11-08"})
        raw = MetadataExtractor(reader_factory=lambda p: reader).read(path)
        assert raw is not None
        self.assertEqual(raw.original_year, "1971")

    def test_compilation_indicators(self) -> None:
        path = Path("/music/a.mp3")
        cases = [
            ({keys.COMPILATION: "1"}, True),
            ({keys.COMPILATION: "0"}, False),
            ({keys.RELEASETYPE: "Album; Compilation"}, True),
            ({keys.ALBUMARTIST: " various artists "}, True),
            ({keys.ALBUMARTIST: "Various Artists Collective"}, False),
            ({}, False),
        ]
        for props, expected in cases:
            reader = _StubReader(path, props=props)
            raw = MetadataExtractor(reader_factory=lambda p, r=reader: r).read(path)
            assert raw is not None
            self.assertEqual(raw.is_compilation, expected, props)

    def test_unreadable_file_returns_none(self) -> None:
        def _broken(path: Path) -> TagReader:
            raise TagReadError(f"cannot parse {path}")

        with self.assertLogs("audio_catalog.extractor", level="WARNING"):
            self.assertIsNone(MetadataExtractor(reader_factory=_broken).read(Path("/music/bad.mp3")))

    def test_os_error_returns_none(self) -> None:
        def _gone(path: Path) -> TagReader:
            raise PermissionError(13, "Permission denied", str(path))

        with self.assertLogs("audio_catalog.extractor", level="WARNING"):
            self.assertIsNone(MetadataExtractor(reader_factory=_gone).read(Path("/music/locked.mp3")))


class TestGuessFromFilename(unittest.TestCase):
    def test_leading_number(self) -> None:
        self.assertEqual(guess_from_filename(Path("03 - Teardrop.mp3")), FilenameGuess("Teardrop", 3))
        self.assertEqual(guess_from_filename(Path("07. Angel.flac")), FilenameGuess("Angel", 7))
        self.assertEqual(guess_from_filename(Path("11_Group_Four.ogg")), FilenameGuess("Group Four", 11))

    def test_number_after_artist_and_album(self) -> None:
        guess = guess_from_filename(Path("Massive Attack - Mezzanine - 05 - Risingson.mp3"))
        self.assertEqual(guess, FilenameGuess("Risingson", 5))

    def test_years_and_plain_names_are_not_track_numbers(self) -> None:
        self.assertEqual(guess_from_filename(Path("1979 - Live.mp3")), FilenameGuess("1979 - Live", None))
        self.assertEqual(guess_from_filename(Path("Hidden Track.mp3")), FilenameGuess("Hidden Track", None))


if __name__ == "__main__":
    unittest.main()
