"""Registry of package verifiers.

Five package managers expose a public registry we can query; the other six
have no such API and are always reported as ``unverifiable``.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

import aiohttp

from .base import DEFAULT_TIMEOUT_SECONDS, NOT_FOUND_MESSAGE, PackageVerifier
from .chocolatey import ChocolateyVerifier
from .flatpak import FlatpakVerifier
from .homebrew import HomebrewVerifier
from .snap import SnapVerifier
from .winget import WingetVerifier

VERIFIABLE_MANAGERS: Final[tuple[str, ...]] = (
    "homebrew",
    "chocolatey",
    "winget",
    "flatpak",
    "snap",
)

UNVERIFIABLE_MANAGERS: Final[tuple[str, ...]] = (
    "macports",
    "apt",
    "dnf",
    "pacman",
    "zypper",
    "scoop",
)

VERIFIER_CLASSES: Final[Mapping[str, type[PackageVerifier]]] = MappingProxyType(
    {
        "homebrew": HomebrewVerifier,
        "chocolatey": ChocolateyVerifier,
        "winget": WingetVerifier,
        "flatpak": FlatpakVerifier,
        "snap": SnapVerifier,
    }
)


def build_verifiers(
    session: aiohttp.ClientSession | None = None,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> Mapping[str, PackageVerifier]:
    """Instantiate one verifier per verifiable manager, sharing ``session``."""
    return MappingProxyType(
        {
            manager_id: VERIFIER_CLASSES[manager_id](session, timeout=timeout)
            for manager_id in VERIFIABLE_MANAGERS
        }
    )


def is_verifiable(package_manager_id: str) -> bool:
    return package_manager_id in VERIFIABLE_MANAGERS


def is_unverifiable(package_manager_id: str) -> bool:
    return package_manager_id in UNVERIFIABLE_MANAGERS


def get_verifier(
    verifiers: Mapping[str, PackageVerifier], package_manager_id: str
) -> PackageVerifier | None:
    """Return the verifier for ``package_manager_id`` or None if it has none."""
    if is_unverifiable(package_manager_id):
        return None
    return verifiers.get(package_manager_id)


def get_verifiable_manager_ids() -> list[str]:
    return list(VERIFIABLE_MANAGERS)


def get_unverifiable_manager_ids() -> list[str]:
    return list(UNVERIFIABLE_MANAGERS)


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "NOT_FOUND_MESSAGE",
    "UNVERIFIABLE_MANAGERS",
    "VERIFIABLE_MANAGERS",
    "VERIFIER_CLASSES",
    "ChocolateyVerifier",
    "FlatpakVerifier",
    "HomebrewVerifier",
    "PackageVerifier",
    "SnapVerifier",
    "WingetVerifier",
    "build_verifiers",
    "get_unverifiable_manager_ids",
    "get_verifiable_manager_ids",
    "get_verifier",
    "is_unverifiable",
    "is_verifiable",
]
