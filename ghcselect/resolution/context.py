"""Resolution context: which GHCs are known, which are installed, and the policy."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from ghcselect.core.version import Version
from ghcselect.toolchain.database import GhcDatabase


class SelectionPolicy(Enum):
    """How to choose among GHC versions that satisfy the constraints."""

    PREFER_INSTALLED = "prefer-installed"
    """Newest installed match, falling back to the newest known match"""

    ALWAYS_NEWEST = "always-newest"
    """Newest known match, whether installed or not"""

    @classmethod
    def from_always_newest(cls, always_newest: bool) -> "SelectionPolicy":
        return cls.ALWAYS_NEWEST if always_newest else cls.PREFER_INSTALLED


@dataclass(frozen=True)
class ResolutionContext:
    """
    Immutable inputs shared by every resolution in one invocation.

    Attributes:
        all_ghc_info: Every known GHC release
        available_ghcs: The subset of known releases installed locally
        policy: Selection policy
    """

    all_ghc_info: GhcDatabase
    available_ghcs: GhcDatabase
    policy: SelectionPolicy = SelectionPolicy.PREFER_INSTALLED

    @property
    def always_newest(self) -> bool:
        return self.policy is SelectionPolicy.ALWAYS_NEWEST

    @classmethod
    def create(
        cls,
        db: GhcDatabase,
        installed: Iterable[Version] = (),
        always_newest: bool = False,
    ) -> "ResolutionContext":
        """
        Build a context from the full database and installed versions.

        Installed versions missing from ``db`` are dropped, since nothing is
        known about what they bundle.
        """
        return cls(
            all_ghc_info=db,
            available_ghcs=db.filter_ghc_versions(installed),
            policy=SelectionPolicy.from_always_newest(always_newest),
        )
