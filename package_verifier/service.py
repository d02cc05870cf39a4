"""Verification orchestration and catalog sweeps.

``VerificationService`` routes a (app, package manager, package) check to the
matching verifier through the retry executor, flags verified-to-failed
regressions for manual review and appends every result to storage.

The regression check reads the previous result and then writes the new one
without any locking, so two concurrent checks of the same pair can both read
the same "previous" record. The flag is a best-effort signal under that race.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Final

import aiohttp
import boto3

from .catalog import DEFAULT_CATALOG, CatalogApp, find_app, iter_targets
from .config import VerifierConfig
from .errors import StorageError
from .models import VerificationResult, VerificationSummary, utc_now_iso
from .retry import BASE_DELAY_SECONDS, DEFAULT_MAX_RETRIES, execute_with_retry
from .storage import VerificationStorage
from .verifiers import (
    DEFAULT_TIMEOUT_SECONDS,
    PackageVerifier,
    build_verifiers,
    get_verifier,
    is_unverifiable,
    is_verifiable,
)

log: Final = logging.getLogger("package-verifier")

DEFAULT_REQUEST_DELAY_SECONDS: Final = 0.1


class VerificationService:
    def __init__(
        self,
        storage: VerificationStorage | None = None,
        *,
        verifiers: Mapping[str, PackageVerifier] | None = None,
        session: aiohttp.ClientSession | None = None,
        catalog: Sequence[CatalogApp] | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = BASE_DELAY_SECONDS,
        request_delay: float = DEFAULT_REQUEST_DELAY_SECONDS,
        http_timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._storage = storage
        self._verifiers = (
            verifiers
            if verifiers is not None
            else build_verifiers(session, timeout=http_timeout)
        )
        self._catalog = catalog if catalog is not None else DEFAULT_CATALOG
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.request_delay = request_delay

    @classmethod
    def from_config(
        cls,
        config: VerifierConfig,
        *,
        catalog: Sequence[CatalogApp] | None = None,
    ) -> VerificationService:
        storage = None
        if config.table_name:
            dynamodb = boto3.resource("dynamodb", region_name=config.aws_region)
            storage = VerificationStorage(dynamodb.Table(config.table_name))
        else:
            log.info("DDB_TABLE_NAME not set; results will not be stored")
        return cls(
            storage,
            catalog=catalog,
            max_retries=config.max_retries,
            base_delay=config.base_delay,
            request_delay=config.request_delay,
            http_timeout=config.http_timeout,
        )

    async def close(self) -> None:
        for verifier in self._verifiers.values():
            await verifier.close()

    async def __aenter__(self) -> VerificationService:
        return self

    async def __aexit__(self, *_exc_info) -> None:
        await self.close()

    @property
    def catalog(self) -> Sequence[CatalogApp]:
        return self._catalog

    @property
    def has_storage(self) -> bool:
        return self._storage is not None

    def is_verifiable(self, package_manager_id: str) -> bool:
        return is_verifiable(package_manager_id)

    def is_unverifiable(self, package_manager_id: str) -> bool:
        return is_unverifiable(package_manager_id)

    def _requires_network(self, package_manager_id: str) -> bool:
        return get_verifier(self._verifiers, package_manager_id) is not None

    # ----- Single verification -----
    async def verify_package(
        self,
        app_id: str,
        package_manager_id: str,
        package_name: str,
        *,
        store_result: bool = True,
    ) -> VerificationResult:
        """Check one package and return the result.

        Unverifiable managers short-circuit without a network call. A
        definitive negative answer comes back as a ``failed`` result; a
        transient failure that survives every retry is raised.
        """
        verifier = get_verifier(self._verifiers, package_manager_id)
        if verifier is None:
            return VerificationResult(
                app_id=app_id,
                package_manager_id=package_manager_id,
                package_name=package_name,
                status="unverifiable",
                timestamp=utc_now_iso(),
            )

        result = await execute_with_retry(
            lambda: verifier.verify(package_name),
            self.max_retries,
            base_delay=self.base_delay,
            description=f"{app_id}/{package_manager_id}",
        )
        result.app_id = app_id

        if result.status == "failed":
            previous = await self.get_latest_result(app_id, package_manager_id)
            if previous is not None and previous.status == "verified":
                result.manual_review_flag = True
                log.warning(
                    "Package %s for %s/%s regressed from verified to failed: %s",
                    package_name,
                    app_id,
                    package_manager_id,
                    result.error_message,
                )

        if store_result:
            await self.store_result(result)
        return result

    async def verify_catalog_app(
        self,
        app_id: str,
        package_manager_id: str,
        *,
        store_result: bool = True,
    ) -> VerificationResult:
        app = find_app(self._catalog, app_id)
        if app is None:
            raise LookupError(f"App not found: {app_id}")
        package_name = app.targets.get(package_manager_id)
        if not package_name:
            raise LookupError(
                f"Package not available for {app_id} on {package_manager_id}"
            )
        return await self.verify_package(
            app_id, package_manager_id, package_name, store_result=store_result
        )

    # ----- Batch sweep -----
    async def verify_all_packages(
        self,
        *,
        delay: float | None = None,
        store_results: bool = True,
    ) -> VerificationSummary:
        """Verify every declared target in the catalog, one at a time.

        ``delay`` seconds are slept between consecutive registry requests.
        Items that raise after retries are counted in ``errors`` and skipped.
        """
        pacing = self.request_delay if delay is None else delay
        summary = VerificationSummary()
        previous_was_network = False

        for app in self._catalog:
            for package_manager_id, package_name in iter_targets(app):
                summary.total += 1
                network_bound = self._requires_network(package_manager_id)
                if network_bound and previous_was_network and pacing > 0:
                    await asyncio.sleep(pacing)
                previous_was_network = previous_was_network or network_bound

                try:
                    result = await self.verify_package(
                        app.id,
                        package_manager_id,
                        package_name,
                        store_result=store_results,
                    )
                except Exception as exc:
                    summary.errors += 1
                    log.error(
                        "Error verifying %s/%s: %s", app.id, package_manager_id, exc
                    )
                    continue
                summary.record(result.status)

        log.info(
            "Verification sweep complete: total=%d verified=%d failed=%d "
            "errors=%d unverifiable=%d",
            summary.total,
            summary.verified,
            summary.failed,
            summary.errors,
            summary.unverifiable,
        )
        return summary

    # ----- Storage -----
    async def store_result(self, result: VerificationResult) -> None:
        """Append ``result`` to storage; failures are logged, never raised."""
        if self._storage is None:
            return
        try:
            await asyncio.to_thread(self._storage.save_result, result)
        except Exception as exc:  # pylint: disable=broad-except
            log.exception(
                "Failed to store verification result for %s/%s: %s",
                result.app_id,
                result.package_manager_id,
                exc,
            )

    async def get_latest_result(
        self, app_id: str, package_manager_id: str
    ) -> VerificationResult | None:
        if self._storage is None:
            return None
        try:
            return await asyncio.to_thread(
                self._storage.get_latest_result, app_id, package_manager_id
            )
        except Exception as exc:  # pylint: disable=broad-except
            log.exception(
                "Failed to fetch latest verification result for %s/%s: %s",
                app_id,
                package_manager_id,
                exc,
            )
            return None

    def _require_storage(self) -> VerificationStorage:
        if self._storage is None:
            raise StorageError("Verification table is not configured")
        return self._storage

    async def get_latest_results(self) -> list[VerificationResult]:
        storage = self._require_storage()
        return await asyncio.to_thread(storage.list_latest_results)

    async def list_flagged(
        self,
        package_manager_id: str | None = None,
        sort_by: str = "timestamp",
    ) -> list[VerificationResult]:
        storage = self._require_storage()
        return await asyncio.to_thread(
            storage.list_flagged, package_manager_id, sort_by
        )

    async def clear_review_flag(self, app_id: str, package_manager_id: str) -> bool:
        storage = self._require_storage()
        cleared = await asyncio.to_thread(
            storage.clear_review_flag, app_id, package_manager_id
        )
        if cleared:
            log.info("Cleared review flag for %s/%s", app_id, package_manager_id)
        return cleared


__all__ = ["DEFAULT_REQUEST_DELAY_SECONDS", "VerificationService"]
