"""Chocolatey verifier backed by the community repository OData feed."""

from __future__ import annotations

import json
from typing import Final

import aiohttp

from package_verifier.models import VerificationResult

from .base import NOT_FOUND_MESSAGE, PackageVerifier

CHOCOLATEY_API_BASE: Final = "https://community.chocolatey.org/api/v2/Packages()"


def escape_odata_string(value: str) -> str:
    """Double single quotes so ``value`` is safe inside an OData string literal."""
    return value.replace("'", "''")


class ChocolateyVerifier(PackageVerifier):
    package_manager_id = "chocolatey"
    api_name = "Chocolatey API"
    request_headers = {"Accept": "application/json"}

    @classmethod
    def build_url(cls, package_name: str) -> str:
        escaped = escape_odata_string(package_name.strip())
        return f"{CHOCOLATEY_API_BASE}?$filter=Id eq '{escaped}'"

    async def interpret_success(
        self,
        package_name: str,
        response: aiohttp.ClientResponse,
        timestamp: str,
    ) -> VerificationResult:
        # A 200 only means the query ran; existence is a non-empty result list.
        body = await response.text()
        try:
            data = json.loads(body)
        except ValueError:
            return self._result(
                package_name,
                "failed",
                timestamp,
                "Invalid JSON response from Chocolatey API",
            )

        results = []
        if isinstance(data, dict) and isinstance(data.get("d"), dict):
            results = data["d"].get("results") or []
        if results:
            return self._result(package_name, "verified", timestamp)
        return self._result(package_name, "failed", timestamp, NOT_FOUND_MESSAGE)


__all__ = ["ChocolateyVerifier", "escape_odata_string"]
