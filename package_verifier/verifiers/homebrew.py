"""Homebrew verifier: formulae and casks from formulae.brew.sh."""

from __future__ import annotations

from typing import Final

from .base import PackageVerifier

HOMEBREW_API_BASE: Final = "https://formulae.brew.sh/api"
CASK_PREFIX: Final = "--cask "


def parse_package_name(package_name: str) -> tuple[bool, str]:
    """Split a catalog name into ``(is_cask, name)``.

    Casks are declared as ``"--cask firefox"``; formulae are bare names.
    """
    stripped = package_name.strip()
    if stripped.startswith(CASK_PREFIX):
        return True, stripped[len(CASK_PREFIX) :].strip()
    return False, stripped


class HomebrewVerifier(PackageVerifier):
    package_manager_id = "homebrew"
    api_name = "Homebrew API"

    @classmethod
    def build_url(cls, package_name: str) -> str:
        is_cask, name = parse_package_name(package_name)
        kind = "cask" if is_cask else "formula"
        return f"{HOMEBREW_API_BASE}/{kind}/{name}.json"


__all__ = ["CASK_PREFIX", "HomebrewVerifier", "parse_package_name"]
