"""
End-to-end tests through the top-level ghcselect API.
"""

import textwrap

import pytest

import ghcselect
from ghcselect import (
    GhcResolver,
    ResolutionContext,
    build_context,
    parse_flag_assignment,
    parse_version,
    read_database,
    select_ghc_version,
)
from ghcselect.config import Settings
from ghcselect.core import GhcSelectError, PlatformInfo


def test_exports_resolve():
    for name in ghcselect.__all__:
        assert getattr(ghcselect, name) is not None, name


def test_errors_share_a_base():
    assert issubclass(ghcselect.core.ExhaustionError, GhcSelectError)
    assert issubclass(ghcselect.core.ConfigError, GhcSelectError)
    assert issubclass(ghcselect.core.MetadataNotFoundError, GhcSelectError)


def test_package_yaml_on_disk(write_manifest, metadata_file):
    path = write_manifest(
        """
        name: webapp
        flags:
          tls: {default: true}
        library:
          dependencies:
            - base >= 4.13 && < 4.16
          when:
            - condition: flag(tls)
              dependencies: [tls >= 1.5]
            - condition: os(windows)
              dependencies: [Win32]
        executables:
          webapp:
            dependencies: [base, webapp]
        tests:
          webapp-test:
            dependencies: [base < 4.15, hspec]
        custom-setup:
          dependencies: [Cabal >= 2.4 && < 3.4, base]
        """
    )
    settings = Settings(
        metadata_path=metadata_file,
        detect_installed=False,
        installed=[parse_version("8.8.4"), parse_version("9.0.1")],
    )
    ctx = build_context(settings)
    platform = PlatformInfo("linux", "x86_64")
    flags = parse_flag_assignment("-tls")

    assert select_ghc_version(path.read_bytes(), flags, ctx, platform=platform) == (
        parse_version("8.8.4")
    )

    newest = ResolutionContext.create(read_database(metadata_file), always_newest=True)
    resolver = GhcResolver(newest, platform=platform)
    assert resolver.find_ghc_version(path.read_bytes(), flags) == parse_version("8.10.2")


def test_manifest_is_validated_before_resolution(write_manifest, sample_db):
    path = write_manifest(
        """
        name: broken
        library:
          when:
            condition: flag(undeclared)
            dependencies: [base]
        """
    )
    ctx = ResolutionContext.create(sample_db)
    with pytest.raises(ghcselect.core.ManifestParseError, match="undeclared"):
        select_ghc_version(path.read_bytes(), {}, ctx, platform=PlatformInfo("linux", "x86_64"))


def test_textwrap_manifest_str_accepted(sample_db):
    text = textwrap.dedent(
        """
        name: tiny
        library:
          dependencies: [base ^>= 4.13.0]
        """
    )
    ctx = ResolutionContext.create(sample_db)
    resolver = GhcResolver(ctx, platform=PlatformInfo("linux", "x86_64"))
    assert resolver.find_ghc_version(text) == parse_version("8.8.4")
