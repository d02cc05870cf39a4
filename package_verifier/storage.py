from __future__ import annotations

import dataclasses
from typing import Any, Final

from boto3.dynamodb.conditions import Attr, Key

from .errors import StorageError
from .models import VerificationResult, ensure_iso_timestamp

REVIEW_INDEX_NAME: Final = "review-index"
SORTABLE_FIELDS: Final[dict[str, str]] = {
    "timestamp": "timestamp",
    "appId": "app_id",
    "packageManagerId": "package_manager_id",
    "packageName": "package_name",
}


class VerificationStorage:
    """Append-only history of verification results in a DynamoDB table.

    Items for one (app, package manager) pair share a partition key and sort
    by ``RESULT#<timestamp>#<suffix>``, so the newest result is the first item
    of a descending query. Flagged items are also projected into the sparse
    ``review-index``.
    """

    def __init__(self, table) -> None:
        self._table = table

    def ensure_table(self) -> None:
        if self._table is None:
            raise StorageError("Verification table is not configured")

    def _query_all(self, **kwargs: Any) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        while True:
            resp = self._table.query(**kwargs)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def _scan_all(self) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        kwargs: dict[str, Any] = {}
        while True:
            resp = self._table.scan(**kwargs)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs = {"ExclusiveStartKey": last_key}

    # ----- History -----
    def save_result(self, result: VerificationResult) -> VerificationResult:
        self.ensure_table()
        stored = dataclasses.replace(
            result, timestamp=ensure_iso_timestamp(result.timestamp)
        )
        self._table.put_item(Item=stored.to_item())
        return stored

    def get_latest_result(
        self, app_id: str, package_manager_id: str
    ) -> VerificationResult | None:
        self.ensure_table()
        resp = self._table.query(
            KeyConditionExpression=Key("pk").eq(
                VerificationResult.partition_key(app_id, package_manager_id)
            )
            & Key("sk").begins_with(VerificationResult.SK_PREFIX),
            ScanIndexForward=False,
            Limit=1,
        )
        items = resp.get("Items", [])
        if not items:
            return None
        return VerificationResult.from_item(items[0])

    def list_history(
        self, app_id: str, package_manager_id: str
    ) -> list[VerificationResult]:
        """Return every stored result for the pair, newest first."""
        self.ensure_table()
        items = self._query_all(
            KeyConditionExpression=Key("pk").eq(
                VerificationResult.partition_key(app_id, package_manager_id)
            )
            & Key("sk").begins_with(VerificationResult.SK_PREFIX),
            ScanIndexForward=False,
        )
        return [VerificationResult.from_item(item) for item in items]

    def list_latest_results(self) -> list[VerificationResult]:
        self.ensure_table()
        latest: dict[str, dict[str, Any]] = {}
        for item in self._scan_all():
            sk = str(item.get("sk", ""))
            if not sk.startswith(VerificationResult.SK_PREFIX):
                continue
            pk = str(item["pk"])
            current = latest.get(pk)
            if current is None or sk > str(current["sk"]):
                latest[pk] = item
        results = [VerificationResult.from_item(item) for item in latest.values()]
        results.sort(key=lambda entry: (entry.app_id, entry.package_manager_id))
        return results

    # ----- Manual review -----
    def list_flagged(
        self,
        package_manager_id: str | None = None,
        sort_by: str = "timestamp",
    ) -> list[VerificationResult]:
        self.ensure_table()
        kwargs: dict[str, Any] = {
            "IndexName": REVIEW_INDEX_NAME,
            "KeyConditionExpression": Key("review_pk").eq(VerificationResult.REVIEW_PK),
            "ScanIndexForward": False,
        }
        if package_manager_id:
            kwargs["FilterExpression"] = Attr("packageManagerId").eq(
                package_manager_id
            )
        results = [
            VerificationResult.from_item(item)
            for item in self._query_all(**kwargs)
            if item.get("manualReviewFlag")
        ]
        attribute = SORTABLE_FIELDS.get(sort_by, "timestamp")
        results.sort(key=lambda entry: getattr(entry, attribute), reverse=True)
        return results

    def clear_review_flag(self, app_id: str, package_manager_id: str) -> bool:
        """Clear the flag on the newest flagged record for the pair.

        Returns False when the pair has no flagged record.
        """
        self.ensure_table()
        items = self._query_all(
            KeyConditionExpression=Key("pk").eq(
                VerificationResult.partition_key(app_id, package_manager_id)
            )
            & Key("sk").begins_with(VerificationResult.SK_PREFIX),
            ScanIndexForward=False,
        )
        flagged = next((item for item in items if item.get("manualReviewFlag")), None)
        if flagged is None:
            return False
        self._table.update_item(
            Key={"pk": flagged["pk"], "sk": flagged["sk"]},
            UpdateExpression="SET manualReviewFlag = :cleared REMOVE review_pk, review_sk",
            ExpressionAttributeValues={":cleared": False},
        )
        return True


__all__ = ["REVIEW_INDEX_NAME", "SORTABLE_FIELDS", "VerificationStorage"]
