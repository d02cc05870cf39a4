#!/usr/bin/env python3
"""One-off tool that creates the DynamoDB table for verification history.

Layout:
  - pk="APP#<appId>#PM#<packageManagerId>", sk="RESULT#<timestamp>#<suffix>"
    (newest result per pair = first item of a descending query)
  - GSI "review-index": review_pk="REVIEW", review_sk=<timestamp>, only
    present on items flagged for manual review

Typical usage:

    python scripts/create_verification_table.py --table PackageVerification
"""

from __future__ import annotations

import argparse
import logging

import boto3
from botocore.exceptions import ClientError

from package_verifier.storage import REVIEW_INDEX_NAME

log = logging.getLogger(__name__)


def table_definition(table_name: str) -> dict[str, object]:
    return {
        "TableName": table_name,
        "BillingMode": "PAY_PER_REQUEST",
        "AttributeDefinitions": [
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
            {"AttributeName": "review_pk", "AttributeType": "S"},
            {"AttributeName": "review_sk", "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": REVIEW_INDEX_NAME,
                "KeySchema": [
                    {"AttributeName": "review_pk", "KeyType": "HASH"},
                    {"AttributeName": "review_sk", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            }
        ],
    }


def create_table(
    table_name: str, *, profile: str | None, region: str | None
) -> bool:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    session_kwargs = {"profile_name": profile} if profile else {}
    session = boto3.Session(**session_kwargs)
    client = session.client("dynamodb", region_name=region)

    try:
        client.create_table(**table_definition(table_name))
    except ClientError as exc:
        code = exc.response.get("Error", {}).get("Code")
        if code == "ResourceInUseException":
            log.info("Table %s already exists; nothing to do", table_name)
            return False
        raise

    client.get_waiter("table_exists").wait(TableName=table_name)
    log.info("Created table %s with index %s", table_name, REVIEW_INDEX_NAME)
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the verification table")
    parser.add_argument("--table", required=True, help="DynamoDB table name")
    parser.add_argument(
        "--profile",
        default=None,
        help="Optional AWS profile name for boto3",
    )
    parser.add_argument(
        "--region",
        default=None,
        help="AWS region (defaults to the profile/environment region)",
    )
    args = parser.parse_args()

    create_table(args.table, profile=args.profile, region=args.region)


if __name__ == "__main__":
    main()
