from __future__ import annotations

from datetime import datetime

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from .models import (
    PK_TEMPLATE,
    AutoResponder,
    GuildSettings,
    ModerationCase,
    StickyMessage,
    TempBan,
    WarningRecord,
)


class ModerationStorage:
    def __init__(self, table) -> None:
        self._table = table

    def ensure_table(self) -> None:
        if self._table is None:
            raise RuntimeError("Moderation table is not configured")

    def _query_prefix(self, guild_id: int, prefix: str) -> list[dict[str, object]]:
        items: list[dict[str, object]] = []
        query_kwargs: dict[str, object] = {
            "KeyConditionExpression": Key("pk").eq(PK_TEMPLATE % guild_id)
            & Key("sk").begins_with(prefix),
            "Select": "ALL_ATTRIBUTES",
        }
        while True:
            resp = self._table.query(**query_kwargs)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return items
            query_kwargs["ExclusiveStartKey"] = last_key

    def _scan_prefix(self, prefix: str) -> list[dict[str, object]]:
        items: list[dict[str, object]] = []
        scan_kwargs: dict[str, object] = {
            "FilterExpression": Attr("sk").begins_with(prefix)
        }
        while True:
            resp = self._table.scan(**scan_kwargs)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return items
            scan_kwargs["ExclusiveStartKey"] = last_key

    def _delete_existing(self, key: dict[str, str]) -> bool:
        try:
            self._table.delete_item(Key=key, ConditionExpression="attribute_exists(pk)")
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code == "ConditionalCheckFailedException":
                return False
            raise
        return True

    # ----- Guild settings -----
    def get_settings(self, guild_id: int) -> GuildSettings:
        self.ensure_table()
        resp = self._table.get_item(Key=GuildSettings.key(guild_id))
        item = resp.get("Item")
        if not item:
            return GuildSettings(guild_id=guild_id)
        return GuildSettings.from_item(item)

    def save_settings(self, settings: GuildSettings) -> None:
        self.ensure_table()
        self._table.put_item(Item=settings.to_item())

    # ----- Moderation cases -----
    def record_case(self, case: ModerationCase) -> None:
        self.ensure_table()
        self._table.put_item(Item=case.to_item())

    def list_cases(
        self, guild_id: int, *, target_id: int | None = None, limit: int | None = None
    ) -> list[ModerationCase]:
        self.ensure_table()
        cases = [
            ModerationCase.from_item(item)
            for item in self._query_prefix(guild_id, ModerationCase.SK_PREFIX)
        ]
        if target_id is not None:
            cases = [case for case in cases if case.target_id == target_id]
        cases.sort(key=lambda case: case.created_at, reverse=True)
        if limit is not None:
            cases = cases[:limit]
        return cases

    # ----- Warnings -----
    def add_warning(self, warning: WarningRecord) -> None:
        self.ensure_table()
        self._table.put_item(Item=warning.to_item())

    def list_warnings(
        self, guild_id: int, user_id: int, *, now: datetime | None = None
    ) -> list[WarningRecord]:
        self.ensure_table()
        warnings = [
            WarningRecord.from_item(item)
            for item in self._query_prefix(guild_id, WarningRecord.user_prefix(user_id))
        ]
        if now is not None:
            warnings = [w for w in warnings if not w.is_expired(now)]
        warnings.sort(key=lambda w: w.created_at)
        return warnings

    def delete_warning(self, guild_id: int, user_id: int, warning_id: str) -> bool:
        self.ensure_table()
        return self._delete_existing(WarningRecord.key(guild_id, user_id, warning_id))

    def list_expired_warnings(self, now: datetime) -> list[WarningRecord]:
        self.ensure_table()
        warnings = [
            WarningRecord.from_item(item)
            for item in self._scan_prefix(WarningRecord.SK_PREFIX)
        ]
        return [w for w in warnings if w.is_expired(now)]

    # ----- Temporary bans -----
    def save_temp_ban(self, ban: TempBan) -> None:
        self.ensure_table()
        self._table.put_item(Item=ban.to_item())

    def delete_temp_ban(self, guild_id: int, user_id: int) -> None:
        self.ensure_table()
        self._table.delete_item(Key=TempBan.key(guild_id, user_id))

    def list_expired_temp_bans(self, now: datetime) -> list[TempBan]:
        self.ensure_table()
        bans = [TempBan.from_item(item) for item in self._scan_prefix(TempBan.SK_PREFIX)]
        return [ban for ban in bans if ban.is_expired(now)]

    # ----- Sticky messages -----
    def get_sticky(self, guild_id: int, channel_id: int) -> StickyMessage | None:
        self.ensure_table()
        resp = self._table.get_item(Key=StickyMessage.key(guild_id, channel_id))
        item = resp.get("Item")
        if not item:
            return None
        return StickyMessage.from_item(item)

    def list_stickies(self, guild_id: int) -> list[StickyMessage]:
        self.ensure_table()
        return [
            StickyMessage.from_item(item)
            for item in self._query_prefix(guild_id, StickyMessage.SK_PREFIX)
        ]

    def save_sticky(self, sticky: StickyMessage) -> None:
        self.ensure_table()
        self._table.put_item(Item=sticky.to_item())

    def delete_sticky(self, guild_id: int, channel_id: int) -> None:
        self.ensure_table()
        self._table.delete_item(Key=StickyMessage.key(guild_id, channel_id))

    # ----- Auto-responders -----
    def list_autoresponders(self, guild_id: int) -> list[AutoResponder]:
        self.ensure_table()
        responders = [
            AutoResponder.from_item(item)
            for item in self._query_prefix(guild_id, AutoResponder.SK_PREFIX)
        ]
        responders.sort(key=lambda r: r.trigger)
        return responders

    def save_autoresponder(self, responder: AutoResponder) -> None:
        self.ensure_table()
        self._table.put_item(Item=responder.to_item())

    def delete_autoresponder(self, guild_id: int, trigger: str) -> bool:
        self.ensure_table()
        return self._delete_existing(AutoResponder.key(guild_id, trigger))


__all__ = ["ModerationStorage"]
