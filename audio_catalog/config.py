from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_EXTENSIONS = [".mp3", ".m4a", ".aac", ".flac", ".wav", ".aiff", ".alac", ".ogg", ".opus"]
DEFAULT_PACKAGE_SUFFIXES = [
    ".app",
    ".bundle",
    ".framework",
    ".plugin",
    ".kext",
    ".pkg",
    ".rtfd",
    ".photoslibrary",
    ".musiclibrary",
    ".tvlibrary",
    ".logicx",
    ".band",
]
DEFAULT_SIDECAR_NAMES = [
    "cover.jpg",
    "cover.jpeg",
    "cover.png",
    "folder.jpg",
    "folder.jpeg",
    "folder.png",
    "front.jpg",
    "front.jpeg",
    "front.png",
    "album.jpg",
    "album.jpeg",
    "album.png",
    "albumart.jpg",
    "albumart.png",
]
CACHE_DIR_NAME = "LocalAlbumLibraryCache"


def default_cache_directory() -> Path:
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Caches"
    elif sys.platform.startswith("win"):
        base = Path(os.environ.get("LOCALAPPDATA") or Path.home() / "AppData" / "Local")
    else:
        base = Path(os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache")
    return base / "audio-catalog" / CACHE_DIR_NAME


class LibrarySettings(BaseModel):
    include_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    package_suffixes: List[str] = Field(default_factory=lambda: list(DEFAULT_PACKAGE_SUFFIXES))
    sidecar_cover_names: List[str] = Field(default_factory=lambda: list(DEFAULT_SIDECAR_NAMES))

    @field_validator("include_extensions", "package_suffixes", mode="before")
    @classmethod
    def _normalize_suffixes(cls, values: List[str]) -> List[str]:
        normalized = []
        for value in values:
            value = str(value).strip().lower()
            if not value:
                continue
            normalized.append(value if value.startswith(".") else f".{value}")
        return normalized


class ArtistSettings(BaseModel):
    majority_threshold: float = Field(default=0.6, gt=0.0, le=1.0)
    fragmentation_cutoff: int = Field(default=3, ge=2)


class CacheSettings(BaseModel):
    enabled: bool = True
    directory: Path = Field(default_factory=default_cache_directory)

    @field_validator("directory", mode="before")
    @classmethod
    def _expand_directory(cls, value: str | Path) -> Path:
        return Path(value).expanduser().resolve()


class ScanSettings(BaseModel):
    worker_concurrency: int = Field(default=4, ge=1)


class Settings(BaseModel):
    library: LibrarySettings = LibrarySettings()
    artists: ArtistSettings = ArtistSettings()
    cache: CacheSettings = CacheSettings()
    scan: ScanSettings = ScanSettings()

    @classmethod
    def load(cls, path: Path) -> "Settings":
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        return cls.model_validate(raw or {})


def find_config(explicit_path: Optional[Path]) -> Optional[Path]:
    if explicit_path:
        if not explicit_path.exists():
            raise FileNotFoundError(f"Config file {explicit_path} does not exist")
        return explicit_path
    cwd = Path.cwd()
    for candidate in (cwd / "config.yaml", cwd / "config.yml"):
        if candidate.exists():
            return candidate
    return None


def load_settings(explicit_path: Optional[Path] = None) -> Settings:
    config_path = find_config(explicit_path)
    if config_path is None:
        return Settings()
    return Settings.load(config_path)
