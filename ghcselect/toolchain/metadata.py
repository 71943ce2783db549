"""
GHC metadata storage.

The metadata database lives as a CSV file under the ghcselect home directory
(``~/.ghcselect`` unless ``GHCSELECT_HOME`` is set). This module locates,
reads, and downloads that file.

Usage:
    from ghcselect.toolchain.metadata import (
        download_database, get_metadata_path, read_database,
    )

    path = get_metadata_path()
    download_database(path)
    db = read_database(path)
"""

import logging
import os
import time
from pathlib import Path
from typing import Optional

import requests
from filelock import FileLock, Timeout as LockTimeout
from requests.exceptions import RequestException

from ghcselect.core.exceptions import (
    MetadataDownloadError,
    MetadataError,
    MetadataNotFoundError,
)
from ghcselect.toolchain.database import GhcDatabase, parse_database

logger = logging.getLogger(__name__)

METADATA_URL = (
    "https://raw.githubusercontent.com/Franciman/vabal-ghc-metadata/master/"
    "vabal-ghc-metadata.csv"
)
METADATA_FILENAME = "ghc-metadata.csv"
HOME_ENV_VAR = "GHCSELECT_HOME"


def get_home_dir() -> Path:
    """
    Get the ghcselect home directory.

    Returns:
        ``$GHCSELECT_HOME`` if set, otherwise ``~/.ghcselect``
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".ghcselect"


def get_metadata_path() -> Path:
    """Get the default location of the metadata file."""
    return get_home_dir() / METADATA_FILENAME


def read_database(path: Optional[Path] = None) -> GhcDatabase:
    """
    Load the metadata database from disk.

    Args:
        path: Metadata file (default: get_metadata_path())

    Returns:
        Parsed database

    Raises:
        MetadataNotFoundError: If the file does not exist
        MetadataParseError: If the file is malformed
        MetadataError: If the file cannot be read
    """
    path = Path(path) if path else get_metadata_path()
    if not path.exists():
        raise MetadataNotFoundError(path)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise MetadataError(f"Failed to read GHC metadata {path}: {e}") from e

    db = parse_database(text)
    logger.debug(f"Loaded {len(db)} GHC metadata entries from {path}")
    return db


def download_database(
    path: Optional[Path] = None,
    url: str = METADATA_URL,
    timeout: int = 30,
    max_retries: int = 3,
    lock_timeout: float = 60,
) -> Path:
    """
    Download the metadata file, replacing any existing copy.

    The content is validated before it replaces the current file, and the
    write happens under a file lock so concurrent processes never observe a
    partial file.

    Args:
        path: Destination (default: get_metadata_path())
        url: Where to fetch the CSV from
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts
        lock_timeout: Seconds to wait for another process holding the lock

    Returns:
        Path to the downloaded file

    Raises:
        MetadataDownloadError: If the download fails after all retries
        MetadataParseError: If the downloaded content is malformed
    """
    path = Path(path) if path else get_metadata_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    text = _fetch(url, timeout, max_retries)
    db = parse_database(text)

    lock = FileLock(str(path.with_name(path.name + ".lock")))
    try:
        with lock.acquire(timeout=lock_timeout):
            tmp_path = path.with_name(path.name + ".tmp")
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, path)
    except LockTimeout as e:
        raise MetadataDownloadError(
            f"Timed out waiting for metadata lock on {path}"
        ) from e
    except OSError as e:
        raise MetadataDownloadError(f"Failed to write GHC metadata {path}: {e}") from e

    logger.info(f"Downloaded metadata for {len(db)} GHC versions to {path}")
    return path


def _fetch(url: str, timeout: int, max_retries: int) -> str:
    for attempt in range(max_retries):
        try:
            logger.debug(f"Fetching GHC metadata from {url}")
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
            return response.text
        except RequestException as e:
            if attempt == max_retries - 1:
                raise MetadataDownloadError(
                    f"Error while downloading metadata after {max_retries} attempts: {e}"
                ) from e

            backoff_seconds = 2**attempt
            logger.warning(
                f"Metadata download attempt {attempt + 1} failed: {e}. "
                f"Retrying in {backoff_seconds}s..."
            )
            time.sleep(backoff_seconds)

    raise MetadataDownloadError("Error while downloading metadata.")
