from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .config import LibrarySettings
from .models import LibraryAccessError

logger = logging.getLogger(__name__)


@dataclass
class DirectoryBatch:
    directory: Path
    files: list[Path]


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def has_extension(name: str, extensions: Iterable[str]) -> bool:
    return os.path.splitext(name)[1].lower() in extensions


class LibraryScanner:
    """Walks a library root and finds the folders that hold audio files."""

    def __init__(self, settings: LibrarySettings) -> None:
        self.settings = settings
        self._exts = {ext.lower() for ext in self.settings.include_extensions}
        self._package_suffixes = tuple(suffix.lower() for suffix in self.settings.package_suffixes)

    @property
    def extensions(self) -> set[str]:
        return set(self._exts)

    def check_root(self, root: Path) -> None:
        if not root.is_dir():
            raise LibraryAccessError(f"Library root {root} is not a readable directory")
        try:
            with os.scandir(root):
                pass
        except OSError as exc:
            raise LibraryAccessError(f"Cannot read library root {root}: {exc}") from exc

    def find_album_folders(self, root: Path) -> list[Path]:
        self.check_root(root)

        def _on_error(exc: OSError) -> None:
            if exc.filename and Path(exc.filename) == root:
                raise LibraryAccessError(f"Cannot read library root {root}: {exc}") from exc
            logger.warning("Skipping unreadable directory %s: %s", exc.filename, exc.strerror or exc)

        folders: set[Path] = set()
        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            dirnames[:] = [name for name in dirnames if not self._is_skipped_directory(name)]
            directory = Path(dirpath)
            for name in filenames:
                if self._should_include(name) and (directory / name).is_file():
                    folders.add(directory)
                    break
        logger.debug("Found %d album folders under %s", len(folders), root)
        return sorted(folders, key=str)

    def collect_directory(self, directory: Path) -> Optional[DirectoryBatch]:
        if not directory.exists() or not directory.is_dir():
            return None
        try:
            files = [
                path
                for path in directory.iterdir()
                if self._should_include(path.name) and path.is_file()
            ]
        except OSError as exc:
            logger.warning("Cannot list %s: %s", directory, exc)
            return None
        if not files:
            return None
        files.sort(key=lambda path: (path.name.casefold(), path.name))
        return DirectoryBatch(directory=directory, files=files)

    def _should_include(self, name: str) -> bool:
        return not is_hidden(name) and has_extension(name, self._exts)

    def _is_skipped_directory(self, name: str) -> bool:
        return is_hidden(name) or name.lower().endswith(self._package_suffixes)
