import unittest
from pathlib import Path

from audio_catalog.models import Album, Track, normalize_year, parse_slash_number


def _track(title: str = "Song", number: int = 1) -> Track:
    return Track(path=Path(f"/music/{title}.flac"), title=title, duration=10.0, track_number=number, artist="A")


class TestParseSlashNumber(unittest.TestCase):
    def test_plain_and_total(self) -> None:
        self.assertEqual(parse_slash_number("3"), (3, None))
        self.assertEqual(parse_slash_number("03/12"), (3, 12))
        self.assertEqual(parse_slash_number(" 2 / 4 "), (2, 4))

    def test_garbage(self) -> None:
        self.assertEqual(parse_slash_number(None), (None, None))
        self.assertEqual(parse_slash_number("A/B"), (None, None))
        self.assertEqual(parse_slash_number(""), (None, None))

    def test_tuple_values(self) -> None:
        self.assertEqual(parse_slash_number((5, 10)), (5, 10))
        self.assertEqual(parse_slash_number(7), (7, None))


class TestNormalizeYear(unittest.TestCase):
    def test_four_digit_prefix(self) -> None:
        self.assertEqual(normalize_year("1996"), "1996")
        self.assertEqual(normalize_year("1996-01-01"), "1996")
        self.assertEqual(normalize_year(" 2001 "), "2001")

    def test_non_numeric_kept_raw(self) -> None:
        self.assertEqual(normalize_year("circa 70s"), "circa 70s")
        self.assertEqual(normalize_year("19961"), "19961")

    def test_empty(self) -> None:
        self.assertIsNone(normalize_year(None))
        self.assertIsNone(normalize_year("  "))

    def test_year_zero_is_absent(self) -> None:
        self.assertIsNone(normalize_year("0000"))
        self.assertIsNone(normalize_year("0000-00-00"))
        self.assertEqual(normalize_year("0001"), "0001")


class TestDomainModels(unittest.TestCase):
    def test_generated_ids_do_not_affect_equality(self) -> None:
        first = _track()
        second = _track()
        self.assertNotEqual(first.id, second.id)
        self.assertEqual(first, second)

    def test_album_requires_tracks(self) -> None:
        with self.assertRaises(ValueError):
            Album(title="Empty", artist="A", year="", tracks=())

    def test_album_is_immutable(self) -> None:
        album = Album(title="T", artist="A", year="2000", tracks=(_track(),), cover=b"img")
        with self.assertRaises(AttributeError):
            album.cover = b"other"  # type: ignore[misc]

    def test_album_duration_and_display_year(self) -> None:
        album = Album(
            title="T",
            artist="A",
            year="1999",
            original_year="1970",
            tracks=(_track("a", 1), _track("b", 2)),
        )
        self.assertEqual(album.duration, 20.0)
        self.assertEqual(album.display_year, "1970")


if __name__ == "__main__":
    unittest.main()
