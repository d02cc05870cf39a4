from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from package_verifier.models import (
    VerificationResult,
    VerificationSummary,
    ensure_iso_timestamp,
    format_timestamp,
)


class TestTimestamps:
    def test_format_uses_milliseconds_and_z_suffix(self):
        moment = datetime(2024, 1, 1, 12, 30, 45, 123456, tzinfo=UTC)
        assert format_timestamp(moment) == "2024-01-01T12:30:45.123Z"

    def test_canonical_value_is_untouched(self):
        value = "2024-01-01T00:00:00.123Z"
        assert ensure_iso_timestamp(value) == value

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2024-01-01T00:00:00Z", "2024-01-01T00:00:00.000Z"),
            ("2024-01-01T00:00:00.5Z", "2024-01-01T00:00:00.500Z"),
            ("2024-01-01T00:00:00.25Z", "2024-01-01T00:00:00.250Z"),
        ],
    )
    def test_z_values_are_padded_to_milliseconds(self, value, expected):
        assert ensure_iso_timestamp(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2024-01-01T03:00:00+03:00", "2024-01-01T00:00:00.000Z"),
            ("2024-01-01 00:00:00", "2024-01-01T00:00:00.000Z"),
            ("2024-01-01", "2024-01-01T00:00:00.000Z"),
        ],
    )
    def test_parseable_values_are_normalized(self, value, expected):
        assert ensure_iso_timestamp(value) == expected

    @pytest.mark.parametrize("value", ["yesterday", "", None])
    def test_unparseable_values_fall_back_to_now(self, value):
        with patch(
            "package_verifier.models.utc_now_iso", return_value="2030-01-01T00:00:00.000Z"
        ):
            assert ensure_iso_timestamp(value) == "2030-01-01T00:00:00.000Z"


class TestVerificationResultItems:
    def test_flagged_item_carries_review_index_keys(self):
        result = VerificationResult(
            app_id="firefox",
            package_manager_id="homebrew",
            package_name="--cask firefox",
            status="failed",
            timestamp="2024-01-01T00:00:00.000Z",
            error_message="Package not found",
            manual_review_flag=True,
        )

        item = result.to_item()

        assert item["pk"] == "APP#firefox#PM#homebrew"
        assert str(item["sk"]).startswith("RESULT#2024-01-01T00:00:00.000Z#")
        assert item["review_pk"] == "REVIEW"
        assert item["review_sk"] == "2024-01-01T00:00:00.000Z"
        assert VerificationResult.from_item(item) == result

    def test_unflagged_item_is_absent_from_review_index(self):
        result = VerificationResult(
            app_id="git",
            package_manager_id="winget",
            package_name="Git.Git",
            status="verified",
        )

        item = result.to_item()

        assert "review_pk" not in item
        assert "manualReviewFlag" not in item
        assert "errorMessage" not in item

    def test_each_item_gets_a_distinct_sort_key(self):
        result = VerificationResult(
            app_id="git",
            package_manager_id="winget",
            package_name="Git.Git",
            status="verified",
        )

        assert result.to_item()["sk"] != result.to_item()["sk"]

    def test_to_dict_uses_wire_field_names(self):
        result = VerificationResult(
            app_id="git",
            package_manager_id="apt",
            package_name="git",
            status="unverifiable",
            timestamp="2024-01-01T00:00:00.000Z",
        )

        assert result.to_dict() == {
            "appId": "git",
            "packageManagerId": "apt",
            "packageName": "git",
            "status": "unverifiable",
            "timestamp": "2024-01-01T00:00:00.000Z",
        }


def test_summary_record_ignores_pending():
    summary = VerificationSummary()
    for status in ("verified", "verified", "failed", "unverifiable", "pending"):
        summary.record(status)

    assert summary.to_dict() == {
        "total": 0,
        "verified": 2,
        "failed": 1,
        "errors": 0,
        "unverifiable": 1,
    }
