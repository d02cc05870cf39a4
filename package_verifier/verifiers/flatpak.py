"""Flatpak verifier: looks the app id up on Flathub."""

from __future__ import annotations

from typing import Final

from .base import PackageVerifier

FLATHUB_API_BASE: Final = "https://flathub.org/api/v2/appstream"


class FlatpakVerifier(PackageVerifier):
    """App ids use reverse domain notation, e.g. ``org.mozilla.firefox``."""

    package_manager_id = "flatpak"
    api_name = "Flathub API"

    @classmethod
    def build_url(cls, package_name: str) -> str:
        return f"{FLATHUB_API_BASE}/{package_name.strip()}"


__all__ = ["FlatpakVerifier"]
