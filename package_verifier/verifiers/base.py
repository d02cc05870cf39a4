from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import ClassVar, Final

import aiohttp

from package_verifier.errors import NetworkError, RateLimitError, ServerError
from package_verifier.models import VerificationResult, VerificationStatus, utc_now_iso

log: Final = logging.getLogger("package-verifier")

NOT_FOUND_MESSAGE: Final = "Package not found"
DEFAULT_TIMEOUT_SECONDS: Final = 10.0


def parse_retry_after(value: str | None) -> int | None:
    """Return the ``Retry-After`` header as whole seconds, or None."""
    if value is None:
        return None
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    return max(seconds, 0)


class PackageVerifier:
    """Checks whether a package exists in one package manager's registry.

    Subclasses provide ``build_url`` (a pure function of the catalog package
    name) and may override ``interpret_success`` or ``rate_limit_error`` when
    their registry signals existence or throttling differently.
    """

    package_manager_id: ClassVar[str]
    api_name: ClassVar[str]
    request_headers: ClassVar[Mapping[str, str]] = {}
    malformed_message: ClassVar[str] = "Invalid package identifier"

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout

    @classmethod
    def build_url(cls, package_name: str) -> str | None:
        raise NotImplementedError

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _result(
        self,
        package_name: str,
        status: VerificationStatus,
        timestamp: str,
        error_message: str | None = None,
    ) -> VerificationResult:
        # appId is stamped by the service; verifiers never know it.
        return VerificationResult(
            app_id="",
            package_manager_id=self.package_manager_id,
            package_name=package_name,
            status=status,
            timestamp=timestamp,
            error_message=error_message,
        )

    async def verify(self, package_name: str) -> VerificationResult:
        url = self.build_url(package_name)
        if url is None:
            return self._result(
                package_name, "failed", utc_now_iso(), self.malformed_message
            )

        log.debug(
            "Checking %s package %s at %s", self.package_manager_id, package_name, url
        )
        try:
            session = await self._get_session()
            async with session.get(url, headers=dict(self.request_headers)) as response:
                # Stamped when the registry answered, not when the request left.
                return await self._interpret(package_name, response, utc_now_iso())
        except (RateLimitError, ServerError):
            raise
        except aiohttp.ClientResponseError as exc:
            return self._result(
                package_name, "failed", utc_now_iso(), f"Verification error: {exc}"
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(
                f"Network error while verifying {package_name}: {str(exc) or type(exc).__name__}"
            ) from exc
        except Exception as exc:
            log.exception(
                "Unexpected error verifying %s package %s",
                self.package_manager_id,
                package_name,
            )
            return self._result(
                package_name, "failed", utc_now_iso(), f"Verification error: {exc}"
            )

    async def _interpret(
        self,
        package_name: str,
        response: aiohttp.ClientResponse,
        timestamp: str,
    ) -> VerificationResult:
        status = response.status
        if 200 <= status < 300:
            return await self.interpret_success(package_name, response, timestamp)

        if status == 404:
            return self._result(package_name, "failed", timestamp, NOT_FOUND_MESSAGE)

        rate_limit = self.rate_limit_error(response)
        if rate_limit is not None:
            raise rate_limit

        if status >= 500:
            raise ServerError(
                f"{self.api_name} returned HTTP {status} {response.reason or ''}".rstrip(),
                status,
            )

        return self._result(
            package_name,
            "failed",
            timestamp,
            f"HTTP error: {status} {response.reason or ''}".rstrip(),
        )

    async def interpret_success(
        self,
        package_name: str,
        response: aiohttp.ClientResponse,
        timestamp: str,
    ) -> VerificationResult:
        return self._result(package_name, "verified", timestamp)

    def rate_limit_error(
        self, response: aiohttp.ClientResponse
    ) -> RateLimitError | None:
        if response.status != 429:
            return None
        retry_after = parse_retry_after(response.headers.get("Retry-After"))
        return RateLimitError(self._rate_limit_message(retry_after), retry_after)

    def _rate_limit_message(self, retry_after: int | None) -> str:
        message = f"Rate limited by {self.api_name}"
        if retry_after:
            message += f". Retry after {retry_after}s"
        return message


__all__ = ["NOT_FOUND_MESSAGE", "PackageVerifier", "parse_retry_after"]
