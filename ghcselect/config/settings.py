"""YAML settings for ghcselect.

Settings live in ``config.yaml`` inside the ghcselect home directory
(``~/.ghcselect`` unless ``GHCSELECT_HOME`` is set). Every key is optional:

    metadata_path: ~/.ghcselect/ghc-metadata.csv
    metadata_url: https://...
    always_newest: false
    detect_installed: true
    installed: [8.8.4, 8.10.2]
    search_paths: [~/.ghcup/bin]

``update_metadata()`` refreshes ``metadata_path`` from ``metadata_url``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from ghcselect.core.exceptions import ConfigError, InvalidVersionError
from ghcselect.core.version import Version, parse_version
from ghcselect.resolution.context import ResolutionContext
from ghcselect.toolchain.installed import find_installed_ghcs
from ghcselect.toolchain.metadata import (
    METADATA_URL,
    download_database,
    get_home_dir,
    get_metadata_path,
    read_database,
)

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "config.yaml"


@dataclass
class Settings:
    """User settings controlling how the resolution context is built."""

    metadata_path: Path = field(default_factory=get_metadata_path)
    metadata_url: str = METADATA_URL
    always_newest: bool = False
    detect_installed: bool = True
    installed: List[Version] = field(default_factory=list)
    search_paths: Optional[List[Path]] = None  # None: PATH plus ~/.ghcup/bin


def get_settings_path() -> Path:
    """Get the default location of the settings file."""
    return get_home_dir() / SETTINGS_FILENAME


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from a YAML file.

    Args:
        path: Settings file (default: get_settings_path())

    Returns:
        Parsed settings; defaults when the file does not exist

    Raises:
        ConfigError: If the file is not valid YAML or a value has the wrong type
    """
    path = Path(path) if path is not None else get_settings_path()
    if not path.exists():
        logger.debug(f"Settings file not found, using defaults: {path}")
        return Settings()

    logger.debug(f"Loading settings from {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Settings in {path} must be a mapping")

    return _parse_settings(data)


def _expect(data: dict, key: str, kind, description: str):
    value = data[key]
    if not isinstance(value, kind):
        raise ConfigError(f"'{key}' must be {description}")
    return value


def _parse_versions(values: list) -> List[Version]:
    versions = []
    for value in values:
        if isinstance(value, float):
            # 8.10 would silently become 8.1
            raise ConfigError(f"Quote version {value!r} in 'installed'")
        try:
            versions.append(parse_version(str(value)))
        except InvalidVersionError as e:
            raise ConfigError(f"Invalid version in 'installed': {e}") from e
    return versions


def _parse_settings(data: dict) -> Settings:
    unknown = set(data) - {
        "metadata_path",
        "metadata_url",
        "always_newest",
        "detect_installed",
        "installed",
        "search_paths",
    }
    if unknown:
        logger.warning(f"Ignoring unknown settings: {', '.join(sorted(unknown))}")

    settings = Settings()
    if "metadata_path" in data:
        settings.metadata_path = Path(
            _expect(data, "metadata_path", str, "a path")
        ).expanduser()
    if "metadata_url" in data:
        settings.metadata_url = _expect(data, "metadata_url", str, "a URL")
    if "always_newest" in data:
        settings.always_newest = _expect(data, "always_newest", bool, "a boolean")
    if "detect_installed" in data:
        settings.detect_installed = _expect(
            data, "detect_installed", bool, "a boolean"
        )
    if "installed" in data:
        settings.installed = _parse_versions(
            _expect(data, "installed", list, "a list of versions")
        )
    if "search_paths" in data:
        settings.search_paths = [
            Path(str(p)).expanduser()
            for p in _expect(data, "search_paths", list, "a list of paths")
        ]
    return settings


def build_context(settings: Optional[Settings] = None) -> ResolutionContext:
    """
    Build a resolution context from settings.

    Reads the metadata database, merges configured and detected installed
    versions, and applies the selection policy.

    Raises:
        MetadataNotFoundError: If the metadata file is missing
        MetadataParseError: If the metadata file is malformed
    """
    settings = settings or load_settings()
    db = read_database(settings.metadata_path)

    installed = set(settings.installed)
    if settings.detect_installed:
        installed |= find_installed_ghcs(settings.search_paths)

    unknown = sorted(v for v in installed if v not in db)
    if unknown:
        logger.debug(
            f"Ignoring installed GHC versions missing from metadata: "
            f"{', '.join(str(v) for v in unknown)}"
        )

    return ResolutionContext.create(
        db, installed=installed, always_newest=settings.always_newest
    )


def update_metadata(settings: Optional[Settings] = None) -> Path:
    """
    Download a fresh metadata file as configured in the settings.

    Fetches ``settings.metadata_url`` into ``settings.metadata_path``.

    Raises:
        MetadataDownloadError: If the download fails
        MetadataParseError: If the downloaded content is malformed
    """
    settings = settings or load_settings()
    return download_database(settings.metadata_path, settings.metadata_url)
