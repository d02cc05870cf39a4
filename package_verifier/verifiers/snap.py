"""Snap verifier backed by the Snapcraft v2 info endpoint."""

from __future__ import annotations

from typing import Final

from .base import PackageVerifier

SNAPCRAFT_API_BASE: Final = "https://api.snapcraft.io/v2/snaps/info"


def strip_flags(package_name: str) -> str:
    """Drop install flags: ``"slack --classic"`` becomes ``"slack"``."""
    parts = package_name.split()
    return parts[0] if parts else ""


class SnapVerifier(PackageVerifier):
    package_manager_id = "snap"
    api_name = "Snapcraft API"
    # The v2 API rejects requests without a device series.
    request_headers = {"Snap-Device-Series": "16"}

    @classmethod
    def build_url(cls, package_name: str) -> str:
        return f"{SNAPCRAFT_API_BASE}/{strip_flags(package_name)}"


__all__ = ["SnapVerifier", "strip_flags"]
