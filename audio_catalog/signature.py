from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, NamedTuple, Tuple

from .scanner import has_extension, is_hidden

logger = logging.getLogger(__name__)


class SignatureEntry(NamedTuple):
    path: str
    mod_time: float


Signature = Tuple[SignatureEntry, ...]


def build_signature(folders: Iterable[Path], extensions: Iterable[str]) -> Signature:
    """Fingerprint every tracked audio file under the given album folders.

    Entries are (absolute path, mtime) pairs sorted by path, so adding,
    removing or touching a tracked file changes the result while other files
    in the folder never do.
    """
    exts = {ext.lower() for ext in extensions}
    entries: list[SignatureEntry] = []
    for folder in folders:
        try:
            with os.scandir(folder) as it:
                for entry in it:
                    if is_hidden(entry.name) or not has_extension(entry.name, exts):
                        continue
                    try:
                        if not entry.is_file():
                            continue
                        stat = entry.stat()
                    except OSError as exc:
                        logger.warning("Cannot stat %s: %s", entry.path, exc)
                        continue
                    entries.append(SignatureEntry(os.path.abspath(entry.path), stat.st_mtime))
        except OSError as exc:
            logger.warning("Cannot list %s while building signature: %s", folder, exc)
    entries.sort(key=lambda item: item.path)
    return tuple(entries)
