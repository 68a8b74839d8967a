from __future__ import annotations

import pytest
from botocore.exceptions import ClientError

from moderation_bot import ModerationStorage


def _condition_values(condition) -> list[tuple[str, object]]:
    """Flatten a boto3 condition tree into ``(attribute, value)`` pairs."""
    values = condition._values  # type: ignore[attr-defined]
    if len(values) == 2 and hasattr(values[0], "name"):
        return [(values[0].name, values[1])]
    pairs: list[tuple[str, object]] = []
    for child in values:
        pairs.extend(_condition_values(child))
    return pairs


class FakeTable:
    """In-memory stand-in for a DynamoDB ``Table`` resource.

    ``page_size`` forces query and scan results to paginate through
    ``LastEvaluatedKey`` so storage loops are exercised.
    """

    def __init__(self, page_size: int | None = None) -> None:
        self.items: dict[tuple[str, str], dict[str, object]] = {}
        self.page_size = page_size
        self.calls: list[str] = []

    def get_item(self, *, Key):
        self.calls.append("get_item")
        item = self.items.get((Key["pk"], Key["sk"]))
        return {"Item": dict(item)} if item is not None else {}

    def put_item(self, *, Item):
        self.calls.append("put_item")
        self.items[(Item["pk"], Item["sk"])] = dict(Item)

    def delete_item(self, *, Key, ConditionExpression=None):
        self.calls.append("delete_item")
        item_key = (Key["pk"], Key["sk"])
        if item_key not in self.items:
            if ConditionExpression is not None:
                raise ClientError(
                    {
                        "Error": {
                            "Code": "ConditionalCheckFailedException",
                            "Message": "Item not found",
                        }
                    },
                    "DeleteItem",
                )
            return
        self.items.pop(item_key)

    def _page(self, keys, start):
        offset = start["offset"] if start else 0
        if self.page_size is None:
            return keys[offset:], None
        end = offset + self.page_size
        next_key = {"offset": end} if end < len(keys) else None
        return keys[offset:end], next_key

    def query(self, *, KeyConditionExpression, ExclusiveStartKey=None, **_kwargs):
        self.calls.append("query")
        pk_value = None
        sk_prefix = ""
        for name, value in _condition_values(KeyConditionExpression):
            if name == "pk":
                pk_value = value
            elif name == "sk":
                sk_prefix = value
        keys = [
            key
            for key in sorted(self.items)
            if key[0] == pk_value and key[1].startswith(sk_prefix)
        ]
        page, next_key = self._page(keys, ExclusiveStartKey)
        resp: dict[str, object] = {"Items": [dict(self.items[key]) for key in page]}
        if next_key:
            resp["LastEvaluatedKey"] = next_key
        return resp

    def scan(self, *, FilterExpression, ExclusiveStartKey=None, **_kwargs):
        self.calls.append("scan")
        ((_, sk_prefix),) = _condition_values(FilterExpression)
        keys = [key for key in sorted(self.items) if key[1].startswith(sk_prefix)]
        page, next_key = self._page(keys, ExclusiveStartKey)
        resp: dict[str, object] = {"Items": [dict(self.items[key]) for key in page]}
        if next_key:
            resp["LastEvaluatedKey"] = next_key
        return resp


@pytest.fixture
def table() -> FakeTable:
    return FakeTable()


@pytest.fixture
def paged_table() -> FakeTable:
    return FakeTable(page_size=1)


@pytest.fixture
def storage(table: FakeTable) -> ModerationStorage:
    return ModerationStorage(table)
