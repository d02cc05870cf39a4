"""Command-line runtime for package verification.

Typical usage:

    python -m package_verifier sweep                 # full catalog pass (cron)
    python -m package_verifier verify firefox snap   # one catalog target
    python -m package_verifier status                # latest result per pair
    python -m package_verifier flagged --package-manager homebrew
    python -m package_verifier resolve firefox homebrew

Configuration comes from the environment; see ``package_verifier.config``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence

from botocore.exceptions import BotoCoreError, ClientError

from .catalog import DEFAULT_CATALOG, CatalogApp, load_catalog
from .config import VerifierConfig, read_verifier_config
from .errors import VerificationError
from .service import VerificationService
from .storage import SORTABLE_FIELDS

log = logging.getLogger("package-verifier")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="package-verifier",
        description="Check that catalog packages exist in their registries",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sweep = subparsers.add_parser("sweep", help="Verify every catalog target")
    sweep.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds to wait between registry requests",
    )
    sweep.add_argument(
        "--no-store",
        action="store_true",
        help="Do not write results to the verification table",
    )

    verify = subparsers.add_parser("verify", help="Verify one catalog target")
    verify.add_argument("app_id")
    verify.add_argument("package_manager_id")
    verify.add_argument("--no-store", action="store_true")

    status = subparsers.add_parser("status", help="Show latest verification status")
    status.add_argument("app_id", nargs="?")
    status.add_argument("package_manager_id", nargs="?")

    flagged = subparsers.add_parser("flagged", help="List results flagged for review")
    flagged.add_argument("--package-manager", default=None)
    flagged.add_argument(
        "--sort-by",
        default="timestamp",
        choices=sorted(SORTABLE_FIELDS),
    )

    resolve = subparsers.add_parser("resolve", help="Clear a manual review flag")
    resolve.add_argument("app_id")
    resolve.add_argument("package_manager_id")

    return parser


def _load_catalog(config: VerifierConfig) -> Sequence[CatalogApp]:
    if config.catalog_path:
        return load_catalog(config.catalog_path)
    return DEFAULT_CATALOG


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


async def run_command(
    args: argparse.Namespace, service: VerificationService, config: VerifierConfig
) -> int:
    if args.command == "sweep":
        summary = await service.verify_all_packages(
            delay=args.delay,
            store_results=config.store_results and not args.no_store,
        )
        _print_json(summary.to_dict())
        return 0

    if args.command == "verify":
        try:
            result = await service.verify_catalog_app(
                args.app_id,
                args.package_manager_id,
                store_result=config.store_results and not args.no_store,
            )
        except LookupError as exc:
            print(exc, file=sys.stderr)
            return 2
        _print_json(result.to_dict())
        return 0

    if args.command == "status":
        if args.app_id and args.package_manager_id:
            latest = await service.get_latest_result(
                args.app_id, args.package_manager_id
            )
            if latest is None:
                _print_json(
                    {
                        "appId": args.app_id,
                        "packageManagerId": args.package_manager_id,
                        "status": "pending",
                        "timestamp": None,
                    }
                )
            else:
                _print_json(latest.to_dict())
            return 0
        results = await service.get_latest_results()
        _print_json([result.to_dict() for result in results])
        return 0

    if args.command == "flagged":
        results = await service.list_flagged(args.package_manager, args.sort_by)
        _print_json([result.to_dict() for result in results])
        return 0

    if args.command == "resolve":
        cleared = await service.clear_review_flag(args.app_id, args.package_manager_id)
        if not cleared:
            print("No flagged package found matching the criteria", file=sys.stderr)
            return 1
        _print_json({"success": True})
        return 0

    raise ValueError(f"Unknown command: {args.command}")


async def _run(args: argparse.Namespace, config: VerifierConfig) -> int:
    try:
        catalog = _load_catalog(config)
    except (OSError, ValueError) as exc:
        log.error("Could not load catalog %s: %s", config.catalog_path, exc)
        return 1
    service = VerificationService.from_config(config, catalog=catalog)
    async with service:
        return await run_command(args, service, config)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = read_verifier_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    try:
        return asyncio.run(_run(args, config))
    except (BotoCoreError, ClientError, VerificationError) as exc:
        log.error("%s failed: %s", args.command, exc)
        return 1


__all__ = ["build_parser", "main", "run_command"]
