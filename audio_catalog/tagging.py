from __future__ import annotations

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional

import mutagen
from mutagen import MutagenError
from mutagen.flac import FLAC, Picture
from mutagen.id3 import ID3, PictureType
from mutagen.mp4 import MP4
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis

from . import meta_keys as keys

logger = logging.getLogger(__name__)


class TagReadError(Exception):
    """Raised when a file cannot be opened or parsed as audio."""


class TagReader(ABC):
    """Narrow read-only view over one file's tags.

    ``basic`` answers the five legacy fields (title, artist, album, year,
    track); ``property`` answers the unified property names listed in
    ``meta_keys``. Both return ``None`` for missing or empty values.
    """

    def __init__(self, path: Path, tags: Any, info: Any = None) -> None:
        self.path = path
        self.tags = tags
        self.info = info

    @property
    def duration(self) -> Optional[float]:
        length = getattr(self.info, "length", None)
        if length is None or length < 0:
            return None
        return float(length)

    @abstractmethod
    def basic(self, field: str) -> Optional[str]:
        ...

    @abstractmethod
    def property(self, name: str) -> Optional[str]:
        ...

    @abstractmethod
    def front_cover(self) -> Optional[bytes]:
        ...

    def attached_pictures(self) -> List[bytes]:
        return []

    @staticmethod
    def _clean(value: object) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        text = str(value).strip()
        return text or None


class ID3Reader(TagReader):
    BASIC_FRAMES = {
        keys.TITLE: ("TIT2",),
        keys.ARTIST: ("TPE1",),
        keys.ALBUM: ("TALB",),
        keys.YEAR: ("TDRC", "TYER"),
        keys.TRACK: ("TRCK",),
    }
    PROPERTY_FRAMES = {
        keys.TITLESORT: ("TSOT",),
        keys.ARTISTSORT: ("TSOP",),
        keys.ALBUMSORT: ("TSOA",),
        keys.ALBUMARTIST: ("TPE2",),
        keys.ALBUMARTISTSORT: ("TSO2", "TXXX:ALBUMARTISTSORT"),
        keys.TRACKNUMBER: ("TRCK",),
        keys.DISCNUMBER: ("TPOS",),
        keys.DATE: ("TDRC", "TYER"),
        keys.ORIGINALYEAR: ("TXXX:ORIGINALYEAR", "TXXX:originalyear"),
        keys.ORIGINALDATE: ("TDOR", "TORY"),
        keys.RELEASETYPE: ("TXXX:MusicBrainz Album Type", "TXXX:RELEASETYPE"),
        keys.COMPILATION: ("TCMP", "TXXX:COMPILATION"),
        keys.MUSICBRAINZ_RELEASETRACKID: ("TXXX:MusicBrainz Release Track Id",),
        keys.MUSICBRAINZ_ALBUMID: ("TXXX:MusicBrainz Album Id",),
        keys.MUSICBRAINZ_ALBUMARTISTID: ("TXXX:MusicBrainz Album Artist Id",),
        keys.MUSICBRAINZ_ARTISTID: ("TXXX:MusicBrainz Artist Id",),
        keys.MUSICBRAINZ_RELEASEGROUPID: ("TXXX:MusicBrainz Release Group Id",),
    }
    MUSICBRAINZ_UFID = "UFID:http://musicbrainz.org"

    def basic(self, field: str) -> Optional[str]:
        return self._first_text(self.BASIC_FRAMES.get(field, ()))

    def property(self, name: str) -> Optional[str]:
        if name == keys.MUSICBRAINZ_TRACKID:
            return self._ufid() or self._first_text(("TXXX:MusicBrainz Track Id",))
        return self._first_text(self.PROPERTY_FRAMES.get(name, ()))

    def front_cover(self) -> Optional[bytes]:
        for frame in self._pictures():
            if frame.type == PictureType.COVER_FRONT and frame.data:
                return bytes(frame.data)
        return None

    def attached_pictures(self) -> List[bytes]:
        return [bytes(frame.data) for frame in self._pictures() if frame.data]

    def _pictures(self) -> list:
        if self.tags is None:
            return []
        return list(self.tags.getall("APIC"))

    def _first_text(self, frame_ids: tuple[str, ...]) -> Optional[str]:
        if self.tags is None:
            return None
        for frame_id in frame_ids:
            frames = self.tags.getall(frame_id)
            if not frames:
                continue
            text = getattr(frames[0], "text", None)
            if not text:
                continue
            value = self._clean(text[0])
            if value:
                return value
        return None

    def _ufid(self) -> Optional[str]:
        if self.tags is None:
            return None
        frames = self.tags.getall(self.MUSICBRAINZ_UFID)
        if not frames:
            return None
        return self._clean(frames[0].data)


class MP4Reader(TagReader):
    BASIC_ATOMS = {
        keys.TITLE: "\xa9nam",
        keys.ARTIST: "\xa9ART",
        keys.ALBUM: "\xa9alb",
        keys.YEAR: "\xa9day",
        keys.TRACK: "trkn",
    }
    PROPERTY_ATOMS = {
        keys.TITLESORT: "sonm",
        keys.ARTISTSORT: "soar",
        keys.ALBUMSORT: "soal",
        keys.ALBUMARTIST: "aART",
        keys.ALBUMARTISTSORT: "soaa",
        keys.TRACKNUMBER: "trkn",
        keys.DISCNUMBER: "disk",
        keys.DATE: "\xa9day",
        keys.COMPILATION: "cpil",
    }
    FREEFORM_PREFIX = "----:com.apple.iTunes:"
    FREEFORM_NAMES = {
        keys.ORIGINALYEAR: "ORIGINALYEAR",
        keys.ORIGINALDATE: "ORIGINALDATE",
        keys.RELEASETYPE: "MusicBrainz Album Type",
        keys.MUSICBRAINZ_TRACKID: "MusicBrainz Track Id",
        keys.MUSICBRAINZ_RELEASETRACKID: "MusicBrainz Release Track Id",
        keys.MUSICBRAINZ_ALBUMID: "MusicBrainz Album Id",
        keys.MUSICBRAINZ_ALBUMARTISTID: "MusicBrainz Album Artist Id",
        keys.MUSICBRAINZ_ARTISTID: "MusicBrainz Artist Id",
        keys.MUSICBRAINZ_RELEASEGROUPID: "MusicBrainz Release Group Id",
    }

    def basic(self, field: str) -> Optional[str]:
        atom = self.BASIC_ATOMS.get(field)
        return self._atom_text(atom) if atom else None

    def property(self, name: str) -> Optional[str]:
        atom = self.PROPERTY_ATOMS.get(name)
        if atom:
            return self._atom_text(atom)
        freeform = self.FREEFORM_NAMES.get(name)
        if freeform:
            return self._atom_text(f"{self.FREEFORM_PREFIX}{freeform}")
        return None

    def front_cover(self) -> Optional[bytes]:
        if self.tags is None:
            return None
        for cover in self.tags.get("covr") or []:
            if cover:
                return bytes(cover)
        return None

    def _atom_text(self, atom: str) -> Optional[str]:
        if self.tags is None:
            return None
        value = self.tags.get(atom)
        if not value:
            return None
        first = value[0] if isinstance(value, list) else value
        if isinstance(first, bool):
            return "1" if first else "0"
        if isinstance(first, tuple):
            number = first[0] if first else 0
            if not number:
                return None
            total = first[1] if len(first) > 1 else 0
            return f"{number}/{total}" if total else str(number)
        return self._clean(first)


class VorbisReader(TagReader):
    BASIC_KEYS = {
        keys.TITLE: ("TITLE",),
        keys.ARTIST: ("ARTIST",),
        keys.ALBUM: ("ALBUM",),
        keys.YEAR: ("DATE", "YEAR"),
        keys.TRACK: ("TRACKNUMBER",),
    }
    PROPERTY_ALIASES = {
        keys.ALBUMARTIST: ("ALBUMARTIST", "ALBUM ARTIST"),
        keys.DATE: ("DATE", "YEAR"),
        keys.RELEASETYPE: ("RELEASETYPE", "MUSICBRAINZ_ALBUMTYPE"),
    }

    def __init__(self, path: Path, tags: Any, info: Any = None, pictures: Optional[list] = None) -> None:
        super().__init__(path, tags, info)
        self._embedded = list(pictures or [])

    def basic(self, field: str) -> Optional[str]:
        return self._first(self.BASIC_KEYS.get(field, ()))

    def property(self, name: str) -> Optional[str]:
        return self._first(self.PROPERTY_ALIASES.get(name, (name,)))

    def front_cover(self) -> Optional[bytes]:
        for picture in self._pictures():
            if picture.type == PictureType.COVER_FRONT and picture.data:
                return bytes(picture.data)
        return None

    def attached_pictures(self) -> List[bytes]:
        found = [bytes(picture.data) for picture in self._pictures() if picture.data]
        for encoded in self._values("COVERART"):
            data = _b64decode(encoded)
            if data:
                found.append(data)
        return found

    def _pictures(self) -> List[Picture]:
        pictures = list(self._embedded)
        for encoded in self._values("METADATA_BLOCK_PICTURE"):
            data = _b64decode(encoded)
            if not data:
                continue
            try:
                pictures.append(Picture(data))
            except (MutagenError, ValueError) as exc:
                logger.debug("Ignoring malformed picture block in %s: %s", self.path, exc)
        return pictures

    def _values(self, key: str) -> List[str]:
        if self.tags is None:
            return []
        try:
            return list(self.tags.get(key) or [])
        except (KeyError, ValueError):
            return []

    def _first(self, names: tuple[str, ...]) -> Optional[str]:
        for name in names:
            for value in self._values(name):
                cleaned = self._clean(value)
                if cleaned:
                    return cleaned
        return None


class GenericReader(TagReader):
    """Fallback for APEv2-tagged or tagless streams (raw AAC, untagged WAV)."""

    BASIC_KEYS = {
        keys.TITLE: ("Title",),
        keys.ARTIST: ("Artist",),
        keys.ALBUM: ("Album",),
        keys.YEAR: ("Year", "Date"),
        keys.TRACK: ("Track",),
    }
    PROPERTY_ALIASES = {
        keys.ALBUMARTIST: ("Album Artist", "ALBUMARTIST"),
        keys.TRACKNUMBER: ("Track", "TRACKNUMBER"),
        keys.DISCNUMBER: ("Disc", "DISCNUMBER"),
        keys.DATE: ("Year", "Date"),
    }
    COVER_KEY = "Cover Art (Front)"

    def basic(self, field: str) -> Optional[str]:
        return self._first(self.BASIC_KEYS.get(field, ()))

    def property(self, name: str) -> Optional[str]:
        return self._first(self.PROPERTY_ALIASES.get(name, (name,)))

    def front_cover(self) -> Optional[bytes]:
        value = self._raw(self.COVER_KEY)
        data = getattr(value, "value", None)
        if not isinstance(data, bytes) or not data:
            return None
        # APEv2 binary items are "<filename>\0<image bytes>".
        _, sep, image = data.partition(b"\x00")
        payload = image if sep else data
        return payload or None

    def _raw(self, key: str) -> Any:
        if self.tags is None:
            return None
        try:
            return self.tags[key]
        except (KeyError, ValueError, TypeError):
            return None

    def _first(self, names: tuple[str, ...]) -> Optional[str]:
        for name in names:
            value = self._raw(name)
            if value is None:
                continue
            if isinstance(value, list):
                value = value[0] if value else None
            if isinstance(getattr(value, "value", None), bytes):
                continue
            # multi-valued APEv2 text items are NUL separated
            cleaned = self._clean(str(value).split("\x00", 1)[0]) if value is not None else None
            if cleaned:
                return cleaned
        return None


def open_tag_reader(path: Path) -> TagReader:
    try:
        audio = mutagen.File(path)
    except (MutagenError, OSError) as exc:
        raise TagReadError(f"Failed to open {path}: {exc}") from exc
    except Exception as exc:  # mutagen can raise plain struct/index errors on corrupt headers
        raise TagReadError(f"Failed to parse {path}: {exc}") from exc
    if audio is None:
        raise TagReadError(f"Unrecognised audio format: {path}")
    return reader_for(path, audio)


def reader_for(path: Path, audio: Any) -> TagReader:
    tags = getattr(audio, "tags", None)
    info = getattr(audio, "info", None)
    if isinstance(audio, MP4):
        return MP4Reader(path, tags, info)
    if isinstance(audio, FLAC):
        return VorbisReader(path, tags, info, pictures=audio.pictures)
    if isinstance(audio, (OggVorbis, OggOpus)):
        return VorbisReader(path, tags, info)
    if isinstance(tags, ID3):
        return ID3Reader(path, tags, info)
    return GenericReader(path, tags, info)


def _b64decode(value: str) -> Optional[bytes]:
    try:
        return base64.b64decode(value)
    except (binascii.Error, ValueError):
        return None
