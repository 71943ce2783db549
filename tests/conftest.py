"""
Pytest configuration and shared fixtures for ghcselect tests.
"""

import textwrap
from pathlib import Path

import pytest

from ghcselect.core.platform import PlatformInfo, clear_platform_cache
from ghcselect.core.version import parse_version
from ghcselect.toolchain.database import GhcDatabase, parse_database


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: tests touching the filesystem or subprocesses",
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


SAMPLE_METADATA = """\
ghc,base,cabal
8.6.5,4.12.0.0,>=1.24 && <2.5
8.8.4,4.13.0.0,>=1.24 && <3.1
8.10.2,4.14.1.0,>=1.24 && <3.3
9.0.1,4.15.0.0,>=2.0 && <3.5
9.2.1,4.16.0.0,>=2.2 && <3.7
"""


@pytest.fixture
def sample_metadata() -> str:
    """Metadata CSV for five GHC releases from 8.6.5 to 9.2.1."""
    return SAMPLE_METADATA


@pytest.fixture
def write_manifest(tmp_path: Path):
    """Factory writing a dedented package.yaml and returning its path."""

    def write(content: str) -> Path:
        path = tmp_path / "package.yaml"
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return write


@pytest.fixture
def v():
    """Shorthand for parse_version."""
    return parse_version


@pytest.fixture
def sample_db() -> GhcDatabase:
    """Database with five GHC releases from 8.6.5 to 9.2.1."""
    return parse_database(SAMPLE_METADATA)


@pytest.fixture
def metadata_file(tmp_path: Path) -> Path:
    """Sample metadata written to disk."""
    path = tmp_path / "ghc-metadata.csv"
    path.write_text(SAMPLE_METADATA, encoding="utf-8")
    return path


@pytest.fixture
def linux() -> PlatformInfo:
    return PlatformInfo("linux", "x86_64")


@pytest.fixture
def windows() -> PlatformInfo:
    return PlatformInfo("windows", "x86_64")


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Point GHCSELECT_HOME at a temporary directory."""
    home = tmp_path / "ghcselect-home"
    home.mkdir()
    monkeypatch.setenv("GHCSELECT_HOME", str(home))
    return home


@pytest.fixture(autouse=True)
def fresh_platform_cache():
    """Keep cached platform detection from leaking between tests."""
    clear_platform_cache()
    yield
    clear_platform_cache()
