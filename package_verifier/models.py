from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import ClassVar, Final, Literal

ISO_PATTERN: Final = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{1,3})?Z$")

VerificationStatus = Literal["verified", "failed", "pending", "unverifiable"]

PackageManagerId = Literal[
    "homebrew",
    "macports",
    "apt",
    "dnf",
    "pacman",
    "zypper",
    "flatpak",
    "snap",
    "winget",
    "chocolatey",
    "scoop",
]

PACKAGE_MANAGER_IDS: Final[tuple[str, ...]] = (
    "homebrew",
    "macports",
    "apt",
    "dnf",
    "pacman",
    "zypper",
    "flatpak",
    "snap",
    "winget",
    "chocolatey",
    "scoop",
)


def format_timestamp(moment: datetime) -> str:
    """Format an aware datetime as ISO-8601 UTC with millisecond precision."""
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def utc_now_iso() -> str:
    """Return current UTC timestamp in ISO-8601 format (ms precision)."""
    return format_timestamp(datetime.now(UTC))


def ensure_iso_timestamp(value: str | None) -> str:
    """Normalize ``value`` to the stored timestamp format.

    Output always has exactly three fraction digits so stored timestamps (and
    the sort keys built from them) order correctly as strings. ``Z`` values
    are padded, anything ``fromisoformat`` can read is reformatted as UTC, and
    unparseable input becomes the current time.
    """
    match = ISO_PATTERN.match(value) if value else None
    if match:
        fraction = (match.group(1) or ".")[1:]
        return f"{value[:19]}.{fraction.ljust(3, '0')}Z"
    if value:
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=UTC)
            return format_timestamp(parsed)
    return utc_now_iso()


@dataclass(slots=True)
class VerificationResult:
    app_id: str
    package_manager_id: str
    package_name: str
    status: VerificationStatus
    timestamp: str = field(default_factory=utc_now_iso)
    error_message: str | None = None
    manual_review_flag: bool | None = None

    PK_TEMPLATE: ClassVar[str] = "APP#%s#PM#%s"
    SK_PREFIX: ClassVar[str] = "RESULT#"
    REVIEW_PK: ClassVar[str] = "REVIEW"

    @classmethod
    def partition_key(cls, app_id: str, package_manager_id: str) -> str:
        return cls.PK_TEMPLATE % (app_id, package_manager_id)

    def key(self, suffix: str | None = None) -> dict[str, str]:
        suffix = suffix or uuid.uuid4().hex
        return {
            "pk": self.partition_key(self.app_id, self.package_manager_id),
            "sk": f"{self.SK_PREFIX}{self.timestamp}#{suffix}",
        }

    def to_item(self) -> dict[str, object]:
        item: dict[str, object] = dict(self.key())
        item.update(
            {
                "appId": self.app_id,
                "packageManagerId": self.package_manager_id,
                "packageName": self.package_name,
                "status": self.status,
                "timestamp": self.timestamp,
            }
        )
        if self.error_message is not None:
            item["errorMessage"] = self.error_message
        if self.manual_review_flag is not None:
            item["manualReviewFlag"] = self.manual_review_flag
        if self.manual_review_flag:
            # Sparse review index: only flagged items carry these keys.
            item["review_pk"] = self.REVIEW_PK
            item["review_sk"] = self.timestamp
        return item

    @classmethod
    def from_item(cls, item: dict[str, object]) -> VerificationResult:
        error_message = item.get("errorMessage")
        flag = item.get("manualReviewFlag")
        return cls(
            app_id=str(item.get("appId", "")),
            package_manager_id=str(item.get("packageManagerId", "")),
            package_name=str(item.get("packageName", "")),
            status=str(item.get("status", "pending")),  # type: ignore[arg-type]
            timestamp=str(item.get("timestamp", "")),
            error_message=str(error_message) if error_message is not None else None,
            manual_review_flag=bool(flag) if flag is not None else None,
        )

    def to_dict(self) -> dict[str, object]:
        """Return the wire representation with camelCase keys."""
        data: dict[str, object] = {
            "appId": self.app_id,
            "packageManagerId": self.package_manager_id,
            "packageName": self.package_name,
            "status": self.status,
            "timestamp": self.timestamp,
        }
        if self.error_message is not None:
            data["errorMessage"] = self.error_message
        if self.manual_review_flag is not None:
            data["manualReviewFlag"] = self.manual_review_flag
        return data


@dataclass(slots=True)
class VerificationSummary:
    total: int = 0
    verified: int = 0
    failed: int = 0
    errors: int = 0
    unverifiable: int = 0

    def record(self, status: VerificationStatus) -> None:
        if status == "verified":
            self.verified += 1
        elif status == "failed":
            self.failed += 1
        elif status == "unverifiable":
            self.unverifiable += 1

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "verified": self.verified,
            "failed": self.failed,
            "errors": self.errors,
            "unverifiable": self.unverifiable,
        }


__all__ = [
    "PACKAGE_MANAGER_IDS",
    "PackageManagerId",
    "VerificationResult",
    "VerificationStatus",
    "VerificationSummary",
    "ensure_iso_timestamp",
    "format_timestamp",
    "utc_now_iso",
]
