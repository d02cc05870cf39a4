from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from package_verifier.models import VerificationResult
from package_verifier.verifiers import PackageVerifier


def _key_conditions(expression) -> Iterable[tuple[str, str, Any]]:
    expr = expression.get_expression()
    if expr["operator"] == "AND":
        for part in expr["values"]:
            yield from _key_conditions(part)
        return
    attribute, value = expr["values"]
    yield expr["operator"], attribute.name, value


class FakeTable:
    """Minimal in-memory stand-in for a boto3 DynamoDB Table resource."""

    def __init__(self) -> None:
        self.items: dict[tuple[str, str], dict[str, Any]] = {}
        self.put_calls = 0
        self.fail_puts: Exception | None = None
        self.fail_queries: Exception | None = None

    def put_item(self, *, Item):
        self.put_calls += 1
        if self.fail_puts is not None:
            raise self.fail_puts
        self.items[(Item["pk"], Item["sk"])] = dict(Item)

    def query(
        self,
        *,
        KeyConditionExpression,
        IndexName=None,
        ScanIndexForward=True,
        Limit=None,
        FilterExpression=None,
        **_kwargs,
    ):
        if self.fail_queries is not None:
            raise self.fail_queries
        hash_name = "review_pk" if IndexName else "pk"
        range_name = "review_sk" if IndexName else "sk"
        hash_value = None
        range_prefix = ""
        for operator, name, value in _key_conditions(KeyConditionExpression):
            if name == hash_name and operator == "=":
                hash_value = value
            elif name == range_name and operator == "begins_with":
                range_prefix = value

        matching = [
            item
            for item in self.items.values()
            if item.get(hash_name) == hash_value
            and str(item.get(range_name, "")).startswith(range_prefix)
        ]
        matching.sort(key=lambda item: str(item[range_name]), reverse=not ScanIndexForward)
        if Limit is not None:
            matching = matching[:Limit]
        if FilterExpression is not None:
            for _operator, name, value in _key_conditions(FilterExpression):
                matching = [item for item in matching if item.get(name) == value]
        return {"Items": [dict(item) for item in matching], "Count": len(matching)}

    def scan(self, **_kwargs):
        return {"Items": [dict(item) for item in self.items.values()]}

    def update_item(self, *, Key, UpdateExpression, ExpressionAttributeValues):
        item = self.items[(Key["pk"], Key["sk"])]
        assert "REMOVE review_pk, review_sk" in UpdateExpression
        item["manualReviewFlag"] = ExpressionAttributeValues[":cleared"]
        item.pop("review_pk", None)
        item.pop("review_sk", None)


class FakeResponse:
    def __init__(
        self,
        status: int = 200,
        *,
        body: str = "{}",
        headers: dict[str, str] | None = None,
        reason: str | None = None,
    ) -> None:
        self.status = status
        self.reason = reason
        self.headers = headers or {}
        self._body = body

    async def text(self) -> str:
        return self._body


class _RequestContext:
    def __init__(self, outcome: FakeResponse | BaseException) -> None:
        self._outcome = outcome

    async def __aenter__(self) -> FakeResponse:
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, *_exc_info) -> None:
        return None


class FakeSession:
    """Replays queued responses (or raises queued exceptions) for ``get``."""

    def __init__(self, *outcomes: FakeResponse | BaseException) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[tuple[str, dict[str, str]]] = []
        self.closed = False

    def get(self, url: str, *, headers: dict[str, str] | None = None):
        self.requests.append((url, dict(headers or {})))
        if not self.outcomes:
            raise AssertionError(f"Unexpected request to {url}")
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        return _RequestContext(outcome)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_table() -> FakeTable:
    return FakeTable()


@pytest.fixture
def no_sleep():
    """Replace asyncio.sleep so retry backoff and pacing return immediately."""
    with patch("package_verifier.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        yield sleep


def make_verifier(package_manager_id: str, *outcomes):
    """Build a verifier double whose ``verify`` yields ``outcomes`` in order.

    Outcomes are statuses (``"verified"``/``"failed"``) or exceptions. A single
    outcome is reused for every call.
    """

    def to_result(outcome, package_name):
        if isinstance(outcome, BaseException):
            raise outcome
        return VerificationResult(
            app_id="",
            package_manager_id=package_manager_id,
            package_name=package_name,
            status=outcome,
            error_message="Package not found" if outcome == "failed" else None,
        )

    queue = list(outcomes)

    async def verify(package_name):
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        return to_result(outcome, package_name)

    verifier = AsyncMock(spec=PackageVerifier)
    verifier.package_manager_id = package_manager_id
    verifier.verify.side_effect = verify
    return verifier
