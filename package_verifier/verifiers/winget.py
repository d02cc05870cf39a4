"""Winget verifier.

Winget has no package API of its own; manifests live in the
``microsoft/winget-pkgs`` GitHub repository under
``manifests/<first letter>/<Publisher>/<Name>``, so existence is checked
through the GitHub contents API. Unauthenticated GitHub calls are throttled
with a 403 whose ``X-RateLimit-Remaining`` header reads ``0``; any other 403
is a real refusal.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Final

import aiohttp

from package_verifier.errors import RateLimitError

from .base import PackageVerifier, parse_retry_after

WINGET_API_BASE: Final = (
    "https://api.github.com/repos/microsoft/winget-pkgs/contents"
)


@dataclass(frozen=True, slots=True)
class WingetPackageId:
    publisher: str
    name: str

    @property
    def first_letter(self) -> str:
        return self.publisher[0].lower()


def parse_winget_package_id(package_name: str) -> WingetPackageId | None:
    """Split ``Publisher.Name[.More]`` on the first dot, or None if malformed."""
    publisher, sep, name = package_name.strip().partition(".")
    if not sep or not publisher:
        return None
    return WingetPackageId(publisher=publisher, name=name)


class WingetVerifier(PackageVerifier):
    package_manager_id = "winget"
    api_name = "GitHub API"
    request_headers = {"Accept": "application/vnd.github.v3+json"}
    malformed_message = (
        "Invalid Winget package ID format. Expected: Publisher.PackageName"
    )

    @classmethod
    def build_url(cls, package_name: str) -> str | None:
        parsed = parse_winget_package_id(package_name)
        if parsed is None:
            return None
        return (
            f"{WINGET_API_BASE}/manifests/"
            f"{parsed.first_letter}/{parsed.publisher}/{parsed.name}"
        )

    def rate_limit_error(
        self, response: aiohttp.ClientResponse
    ) -> RateLimitError | None:
        if response.status not in (403, 429):
            return None
        remaining = response.headers.get("X-RateLimit-Remaining")
        if response.status == 403 and remaining != "0":
            return None

        retry_after = _seconds_until_reset(response.headers.get("X-RateLimit-Reset"))
        if retry_after is None:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
        return RateLimitError(self._rate_limit_message(retry_after), retry_after)


def _seconds_until_reset(reset: str | None) -> int | None:
    reset_at = parse_retry_after(reset)
    if reset_at is None:
        return None
    return max(0, reset_at - int(time.time()))


__all__ = ["WingetPackageId", "WingetVerifier", "parse_winget_package_id"]
