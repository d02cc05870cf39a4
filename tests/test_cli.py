"""Tests for the command-line runtime."""

import json
from dataclasses import replace
from unittest.mock import AsyncMock, patch

import pytest

from package_verifier import cli
from package_verifier.config import VerifierConfig
from package_verifier.errors import StorageError
from package_verifier.models import VerificationResult, VerificationSummary
from package_verifier.service import VerificationService

CONFIG = VerifierConfig(
    table_name="package-verification",
    aws_region="us-east-1",
    max_retries=3,
    base_delay=1.0,
    request_delay=0.1,
    http_timeout=10.0,
    store_results=True,
    catalog_path=None,
    log_level="INFO",
)

FLAGGED = VerificationResult(
    app_id="vlc",
    package_manager_id="homebrew",
    package_name="--cask vlc",
    status="failed",
    timestamp="2024-02-01T00:00:00.000Z",
    error_message="Package not found",
    manual_review_flag=True,
)


def parse(*argv: str):
    return cli.build_parser().parse_args(list(argv))


@pytest.fixture
def service():
    return AsyncMock(spec=VerificationService)


class TestParser:
    def test_sweep_defaults(self):
        args = parse("sweep")
        assert args.delay is None
        assert args.no_store is False

    def test_sweep_options(self):
        args = parse("sweep", "--delay", "0.5", "--no-store")
        assert args.delay == 0.5
        assert args.no_store is True

    def test_flagged_rejects_unknown_sort_field(self):
        with pytest.raises(SystemExit):
            parse("flagged", "--sort-by", "status")

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            parse()


class TestRunCommand:
    @pytest.mark.asyncio
    async def test_sweep_prints_summary(self, service, capsys):
        service.verify_all_packages.return_value = VerificationSummary(
            total=3, verified=2, unverifiable=1
        )

        code = await cli.run_command(parse("sweep", "--delay", "0"), service, CONFIG)

        assert code == 0
        service.verify_all_packages.assert_awaited_once_with(
            delay=0.0, store_results=True
        )
        assert json.loads(capsys.readouterr().out)["verified"] == 2

    @pytest.mark.asyncio
    async def test_sweep_honors_store_setting(self, service):
        service.verify_all_packages.return_value = VerificationSummary()
        config = replace(CONFIG, store_results=False)

        await cli.run_command(parse("sweep"), service, config)

        service.verify_all_packages.assert_awaited_once_with(
            delay=None, store_results=False
        )

    @pytest.mark.asyncio
    async def test_verify_prints_result(self, service, capsys):
        service.verify_catalog_app.return_value = FLAGGED

        code = await cli.run_command(
            parse("verify", "vlc", "homebrew", "--no-store"), service, CONFIG
        )

        assert code == 0
        service.verify_catalog_app.assert_awaited_once_with(
            "vlc", "homebrew", store_result=False
        )
        payload = json.loads(capsys.readouterr().out)
        assert payload["manualReviewFlag"] is True

    @pytest.mark.asyncio
    async def test_verify_unknown_target(self, service, capsys):
        service.verify_catalog_app.side_effect = LookupError("App not found: emacs")

        code = await cli.run_command(parse("verify", "emacs", "snap"), service, CONFIG)

        assert code == 2
        assert "App not found: emacs" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_status_for_unseen_pair_is_pending(self, service, capsys):
        service.get_latest_result.return_value = None

        code = await cli.run_command(parse("status", "git", "snap"), service, CONFIG)

        assert code == 0
        assert json.loads(capsys.readouterr().out) == {
            "appId": "git",
            "packageManagerId": "snap",
            "status": "pending",
            "timestamp": None,
        }

    @pytest.mark.asyncio
    async def test_status_lists_latest_results(self, service, capsys):
        service.get_latest_results.return_value = [FLAGGED]

        await cli.run_command(parse("status"), service, CONFIG)

        assert json.loads(capsys.readouterr().out)[0]["appId"] == "vlc"

    @pytest.mark.asyncio
    async def test_flagged_passes_filter_and_sort(self, service, capsys):
        service.list_flagged.return_value = [FLAGGED]

        await cli.run_command(
            parse("flagged", "--package-manager", "homebrew", "--sort-by", "appId"),
            service,
            CONFIG,
        )

        service.list_flagged.assert_awaited_once_with("homebrew", "appId")
        assert len(json.loads(capsys.readouterr().out)) == 1

    @pytest.mark.asyncio
    async def test_resolve_success(self, service, capsys):
        service.clear_review_flag.return_value = True

        code = await cli.run_command(parse("resolve", "vlc", "homebrew"), service, CONFIG)

        assert code == 0
        assert json.loads(capsys.readouterr().out) == {"success": True}

    @pytest.mark.asyncio
    async def test_resolve_without_flag(self, service, capsys):
        service.clear_review_flag.return_value = False

        code = await cli.run_command(parse("resolve", "vlc", "snap"), service, CONFIG)

        assert code == 1
        assert "No flagged package found" in capsys.readouterr().err


class TestMain:
    def test_verification_errors_exit_non_zero(self, caplog):
        with (
            patch.object(cli, "read_verifier_config", return_value=CONFIG),
            patch.object(
                cli, "_run", new=AsyncMock(side_effect=StorageError("no table"))
            ),
        ):
            assert cli.main(["flagged"]) == 1

        assert "flagged failed: no table" in caplog.text

    def test_returns_command_exit_code(self):
        with (
            patch.object(cli, "read_verifier_config", return_value=CONFIG),
            patch.object(cli, "_run", new=AsyncMock(return_value=2)),
        ):
            assert cli.main(["verify", "emacs", "snap"]) == 2


class TestCatalogPath:
    @pytest.mark.parametrize("content", [None, "{not json", '{"id": "git"}'])
    def test_bad_catalog_exits_non_zero(self, tmp_path, caplog, content):
        path = tmp_path / "catalog.json"
        if content is not None:
            path.write_text(content, encoding="utf-8")
        config = replace(CONFIG, table_name=None, catalog_path=str(path))

        with (
            patch.object(cli, "read_verifier_config", return_value=config),
            patch.object(cli.VerificationService, "from_config") as from_config,
        ):
            assert cli.main(["sweep"]) == 1

        from_config.assert_not_called()
        assert f"Could not load catalog {path}" in caplog.text

    def test_valid_catalog_is_passed_to_service(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(
            json.dumps([{"id": "git", "targets": {"apt": "git"}}]), encoding="utf-8"
        )
        config = replace(CONFIG, table_name=None, catalog_path=str(path))
        service = AsyncMock(spec=VerificationService)
        service.__aenter__.return_value = service
        service.verify_all_packages.return_value = VerificationSummary(
            total=1, unverifiable=1
        )

        with (
            patch.object(cli, "read_verifier_config", return_value=config),
            patch.object(
                cli.VerificationService, "from_config", return_value=service
            ) as from_config,
        ):
            assert cli.main(["sweep", "--no-store"]) == 0

        catalog = from_config.call_args.kwargs["catalog"]
        assert [app.id for app in catalog] == ["git"]
