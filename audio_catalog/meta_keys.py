from __future__ import annotations

# Unified tag property names shared by every TagReader implementation.
# Format readers translate these into their own frame/atom/comment keys.

TITLE = "title"
ARTIST = "artist"
ALBUM = "album"
YEAR = "year"
TRACK = "track"

TITLESORT = "TITLESORT"
ARTISTSORT = "ARTISTSORT"
ALBUMSORT = "ALBUMSORT"
ALBUMARTIST = "ALBUMARTIST"
ALBUMARTISTSORT = "ALBUMARTISTSORT"
TRACKNUMBER = "TRACKNUMBER"
DISCNUMBER = "DISCNUMBER"
DATE = "DATE"
ORIGINALYEAR = "ORIGINALYEAR"
ORIGINALDATE = "ORIGINALDATE"
RELEASETYPE = "RELEASETYPE"
COMPILATION = "COMPILATION"

MUSICBRAINZ_TRACKID = "MUSICBRAINZ_TRACKID"
MUSICBRAINZ_RELEASETRACKID = "MUSICBRAINZ_RELEASETRACKID"
MUSICBRAINZ_ALBUMID = "MUSICBRAINZ_ALBUMID"
MUSICBRAINZ_ALBUMARTISTID = "MUSICBRAINZ_ALBUMARTISTID"
MUSICBRAINZ_ARTISTID = "MUSICBRAINZ_ARTISTID"
MUSICBRAINZ_RELEASEGROUPID = "MUSICBRAINZ_RELEASEGROUPID"

# External identifier keys as stored on RawTrack/Track/Album.
TRACK_ID_KEYS = {
    MUSICBRAINZ_TRACKID: "musicbrainz_track_id",
    MUSICBRAINZ_RELEASETRACKID: "musicbrainz_release_track_id",
}
ALBUM_ID_KEYS = {
    MUSICBRAINZ_ALBUMID: "musicbrainz_album_id",
    MUSICBRAINZ_ALBUMARTISTID: "musicbrainz_album_artist_id",
    MUSICBRAINZ_ARTISTID: "musicbrainz_artist_id",
    MUSICBRAINZ_RELEASEGROUPID: "musicbrainz_release_group_id",
}

UNKNOWN_ARTIST = "Unknown Artist"
VARIOUS_ARTISTS = "Various Artists"
