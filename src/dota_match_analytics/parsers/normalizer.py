"""事件归一化：把解析器给出的游戏事件/战斗日志转换为 NormalizedEvent。"""
from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from ..analyzers.identity import IdentityResolver, team_label
from ..data.models import (
    CombatLogRecord,
    EventKind,
    GameEventRecord,
    NormalizedEvent,
)


class EventNormalizationError(ValueError):
    """单条记录无法归一化；调用方跳过该记录继续处理。"""


_COMBAT_KINDS: dict[str, EventKind] = {
    "damage": EventKind.DAMAGE,
    "heal": EventKind.HEAL,
    "death": EventKind.DEATH,
    "modifier_add": EventKind.MODIFIER_ADD,
    "modifier_remove": EventKind.MODIFIER_REMOVE,
    "gold": EventKind.GOLD,
    "xp": EventKind.XP,
    "ability": EventKind.ABILITY_CAST,
    "ability_trigger": EventKind.ABILITY_CAST,
    "item": EventKind.ITEM_USE,
    "purchase": EventKind.PURCHASE,
    "buyback": EventKind.BUYBACK,
}

# 只需要 player 字段的状态类游戏事件
_STATUS_EVENTS: dict[str, EventKind] = {
    "dota_roshan_kill": EventKind.ROSHAN_KILL,
    "aegis_picked_up": EventKind.AEGIS_PICKUP,
    "dota_aegis_event": EventKind.AEGIS_PICKUP,
    "aegis_denied": EventKind.AEGIS_STATUS,
    "aegis_snatched": EventKind.AEGIS_STATUS,
    "aegis_expired": EventKind.AEGIS_LOST,
    "aegis_lost": EventKind.AEGIS_LOST,
    "shard_picked_up": EventKind.SHARD_PICKUP,
    "cheese_picked_up": EventKind.CHEESE_PICKUP,
}

_ITEM_NAME_KEYS = ("item", "itemname", "item_name", "item_def")


def parse_time(value: Any) -> int:
    """时间（秒，可为字符串/浮点）四舍五入为整数；缺失或非法时返回 -1。"""
    if value is None or isinstance(value, bool):
        return -1
    try:
        d = float(str(value).strip())
    except ValueError:
        return -1
    if math.isnan(d) or math.isinf(d):
        return -1
    return int(math.floor(d + 0.5))


def _int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def _s(value: Any) -> str:
    return "" if value is None else str(value)


def combat_log_type(raw: Any) -> str:
    """DOTA_COMBATLOG_DAMAGE / damage -> damage。"""
    if not isinstance(raw, str):
        raise EventNormalizationError(f"combat log type must be a string, got {type(raw).__name__}")
    t = raw.strip().lower()
    if t.startswith("dota_combatlog_"):
        t = t[len("dota_combatlog_"):]
    return t


class EventNormalizer:
    """
    负责单条记录的归一化。不识别的记录返回 None（非错误）；
    结构损坏的记录抛出 EventNormalizationError。
    """

    def __init__(self, identity: IdentityResolver, ult_names: set[str] | None = None):
        self.identity = identity
        self.ult_names = set(ult_names or ())

    def normalize(self, record: GameEventRecord | CombatLogRecord) -> NormalizedEvent | None:
        if isinstance(record, CombatLogRecord):
            return self.normalize_combat_log(record)
        if isinstance(record, GameEventRecord):
            return self.normalize_game_event(record)
        raise EventNormalizationError(f"unsupported record: {type(record).__name__}")

    def _event(self, time: int, kind: EventKind, actor: str = "", **kw: Any) -> NormalizedEvent:
        team = kw.pop("team", None)
        if team is None:
            team = self.identity.team_of(actor)
        return NormalizedEvent(
            time=time,
            kind=kind,
            actor=actor,
            owner=self.identity.owner_of(actor),
            team=team,
            **kw,
        )

    def normalize_combat_log(self, rec: CombatLogRecord) -> NormalizedEvent | None:
        kind = _COMBAT_KINDS.get(combat_log_type(rec.log_type))
        if kind is None:
            return None
        t = parse_time(rec.timestamp)
        attacker = _s(rec.attacker)
        target = _s(rec.target)
        inflictor = _s(rec.inflictor)
        value = _int(rec.value)

        if kind is EventKind.PURCHASE:
            # 购买者通常在 target
            return self._event(t, kind, target or attacker, inflictor=inflictor)
        if kind is EventKind.BUYBACK:
            return self._event(t, kind, target, value=value)
        if kind in (EventKind.GOLD, EventKind.XP):
            team = self.identity.team_of(target) or self.identity.team_of(attacker)
            return self._event(t, kind, attacker, target=target, inflictor=inflictor,
                               value=value, team=team)
        is_ult = kind is EventKind.ABILITY_CAST and inflictor in self.ult_names
        return self._event(t, kind, attacker, target=target, inflictor=inflictor,
                           value=value, is_ult=is_ult)

    def normalize_game_event(self, rec: GameEventRecord) -> NormalizedEvent | None:
        props = rec.properties
        if not isinstance(props, Mapping):
            raise EventNormalizationError(f"game event {rec.name!r} has no property bag")
        name = _s(rec.name)
        t = parse_time(props.get("game_time"))
        player = _s(props.get("player"))

        if name == "dota_item_purchase":
            return self._event(t, EventKind.PURCHASE, player, inflictor=_s(props.get("item")))
        if name in ("dota_item_picked_up", "dota_neutral_item_picked_up"):
            item = ""
            for key in _ITEM_NAME_KEYS:
                if props.get(key) is not None:
                    item = _s(props.get(key))
                    break
            return self._event(t, EventKind.ITEM_PICKUP, player, inflictor=item,
                               neutral=name == "dota_neutral_item_picked_up")
        if name == "dota_item_used":
            return self._event(t, EventKind.ITEM_USE, player, inflictor=_s(props.get("item")))
        if name == "dota_rune_activated":
            return self._event(t, EventKind.RUNE, player, inflictor=_s(props.get("rune")))
        if name in ("bottle_refill_used", "bottle_refill_obtained"):
            return self._event(t, EventKind.RUNE, player, detail=name)
        if name == "dota_roshan_kill":
            return self._event(t, EventKind.ROSHAN_KILL, _s(props.get("killer")))
        if name in ("dota_glyph_used", "dota_scan_used"):
            kind = EventKind.GLYPH if name == "dota_glyph_used" else EventKind.SCAN
            return self._event(t, kind, team=team_label(props.get("team")))
        status = _STATUS_EVENTS.get(name)
        if status is not None:
            return self._event(t, status, player, detail=name)
        return None
