from __future__ import annotations

import argparse
import asyncio
import json
import locale
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from .app import AudioCatalogApp
from .catalog import Catalog
from .config import load_settings
from .models import Album, ScanError

LOG_FORMAT = "%(levelname)-7s %(name)s: %(message)s"

ANSI_RESET = "\033[0m"
ANSI_BY_LEVEL = {
    logging.DEBUG: "\033[2m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}

logger = logging.getLogger(__name__)


class RootRelativeFormatter(logging.Formatter):
    """Prints paths under the scanned library root relative to it."""

    def __init__(self, fmt: str, roots: list[Path]) -> None:
        super().__init__(fmt)
        # Longest first so nested roots are stripped before their parents.
        self.prefixes = sorted((f"{root}/" for root in roots), key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        for prefix in self.prefixes:
            text = text.replace(prefix, "")
        return text


class AnsiFormatter(RootRelativeFormatter):
    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        code = ANSI_BY_LEVEL.get(record.levelno)
        return f"{code}{text}{ANSI_RESET}" if code else text


class ProblemCollector(logging.Handler):
    """Keeps formatted warnings and errors for the summary printed at exit."""

    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.lines.append(self.format(record))
        except Exception:
            self.handleError(record)

    def print_summary(self, stream: TextIO) -> None:
        if not self.lines:
            return
        print(f"\n{len(self.lines)} warning(s) during this run:", file=stream)
        for line in self.lines:
            print(f"  {line}", file=stream)


def configure_logging(level_name: str, roots: list[Path]) -> ProblemCollector:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(getattr(logging, level_name.upper(), logging.INFO))

    console = logging.StreamHandler(sys.stderr)
    formatter_cls = AnsiFormatter if sys.stderr.isatty() else RootRelativeFormatter
    console.setFormatter(formatter_cls(LOG_FORMAT, roots))
    root_logger.addHandler(console)

    collector = ProblemCollector()
    collector.setFormatter(RootRelativeFormatter(LOG_FORMAT, roots))
    root_logger.addHandler(collector)

    logging.getLogger("mutagen").setLevel(logging.WARNING)
    return collector


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="audio-catalog", description="Build an album catalog from a folder of audio files")
    parser.add_argument("--config", type=Path, help="YAML settings file (default: ./config.yaml if present)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level name, e.g. INFO or DEBUG")

    commands = parser.add_subparsers(dest="command", required=True)
    scan_parser = commands.add_parser("scan", help="Scan a library root and list its albums")
    scan_parser.add_argument("root", type=Path, help="Library root folder")
    scan_parser.add_argument("--no-cache", action="store_true", help="Ignore and do not write the scan cache")
    scan_parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON to stdout")
    artists_parser = commands.add_parser("artists", help="List the album artists of a library root")
    artists_parser.add_argument("root", type=Path, help="Library root folder")
    clear_parser = commands.add_parser("clear-cache", help="Delete cached scans")
    clear_parser.add_argument("--root", type=Path, default=None, help="Only forget this library root")
    return parser


def album_record(album: Album) -> dict[str, object]:
    return {
        "title": album.title,
        "artist": album.artist,
        "year": album.year,
        "original_year": album.original_year,
        "has_cover": album.cover is not None,
        "external_ids": dict(album.external_ids),
        "tracks": [
            {
                "track_number": track.track_number,
                "title": track.title,
                "artist": track.artist,
                "duration": round(track.duration, 3),
                "path": str(track.path),
            }
            for track in album.tracks
        ],
    }


def print_catalog(catalog: Catalog, *, json_output: bool = False) -> None:
    if json_output:
        print(json.dumps([album_record(album) for album in catalog.albums], indent=2, ensure_ascii=False))
        return
    for artist in catalog.artists:
        print(artist)
        for album in catalog.albums_by(artist):
            year = f" ({album.display_year})" if album.display_year else ""
            print(f"  {album.title}{year} [{len(album.tracks)} tracks]")
    print(f"\n{len(catalog.albums)} albums, {catalog.track_count} tracks")


def use_system_collation() -> None:
    """Sort titles the way the user's locale does instead of by code point."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logger.debug("Keeping default collation: %s", exc)


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = load_settings(args.config)
    root: Optional[Path] = getattr(args, "root", None)
    collector = configure_logging(args.log_level, [root.expanduser().absolute()] if root else [])
    use_system_collation()

    app = AudioCatalogApp.create(settings)
    try:
        if args.command == "clear-cache":
            app.scanner.clear_cache(args.root)
            print("Cleared cached scans." if args.root is None else f"Cleared cached scan of {args.root}.")
            return
        catalog = asyncio.run(app.library.load(root, use_cache=not getattr(args, "no_cache", False)))
        if args.command == "artists":
            print("\n".join(catalog.artists))
        else:
            print_catalog(catalog, json_output=args.json)
    except ScanError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc
    finally:
        collector.print_summary(sys.stderr)


if __name__ == "__main__":
    main()
