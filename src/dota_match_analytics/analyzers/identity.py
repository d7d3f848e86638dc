"""单位归属解析：召唤物/幻象/分身 -> 所属英雄；队伍编号 -> 阵营名。"""
from __future__ import annotations

import math
from typing import Any

from ..data.models import TEAM_DIRE, TEAM_RADIANT

HERO_PREFIX = "npc_dota_hero_"
HERO_CLASS_PREFIX = "cdota_unit_hero_"

# 召唤单位名称片段 -> 所属英雄（按顺序匹配）
COMPANION_OWNERS: list[tuple[tuple[str, ...], str]] = [
    (("spirit_bear",), "npc_dota_hero_lone_druid"),
    (("tempest_double", "arc_warden_tempest"), "npc_dota_hero_arc_warden"),
    (("meepo",), "npc_dota_hero_meepo"),
    (("visage_familiar",), "npc_dota_hero_visage"),
]

_TEAM_LABELS = {2: TEAM_RADIANT, 3: TEAM_DIRE}


def is_hero(name: str | None) -> bool:
    return (name or "").lower().startswith(HERO_PREFIX)


def team_label(team_num: Any) -> str:
    """队伍编号 2 -> Radiant，3 -> Dire，其余为空串。"""
    if isinstance(team_num, bool):
        return ""
    if isinstance(team_num, float) and not math.isfinite(team_num):
        return ""
    if isinstance(team_num, (int, float)):
        return _TEAM_LABELS.get(int(team_num), "")
    if isinstance(team_num, str):
        s = team_num.strip()
        if s.lstrip("-").isdigit():
            return _TEAM_LABELS.get(int(s), "")
        low = s.lower()
        if low in ("radiant", "goodguys"):
            return TEAM_RADIANT
        if low in ("dire", "badguys"):
            return TEAM_DIRE
    return ""


def team_from_name(name: str | None) -> str:
    """从建筑/小兵单位名推断阵营（goodguys / badguys）。"""
    n = (name or "").lower()
    if "goodguys" in n:
        return TEAM_RADIANT
    if "badguys" in n:
        return TEAM_DIRE
    return ""


def hero_unit_from_class(dt_class: str | None) -> str:
    """CDOTA_Unit_Hero_Axe -> npc_dota_hero_axe；非英雄类返回空串。"""
    low = (dt_class or "").lower()
    if not low.startswith(HERO_CLASS_PREFIX):
        return ""
    return HERO_PREFIX + low[len(HERO_CLASS_PREFIX):]


def normalize_owner(unit: str | None) -> str:
    """
    将单位名解析为所属英雄名。依次：
    已是英雄 -> 自身；名字里嵌有英雄名（幻象等）-> 该英雄；
    已知召唤物片段 -> 固定映射；否则原样返回。
    """
    if not unit:
        return ""
    u = unit.lower()
    if u.startswith(HERO_PREFIX):
        return u
    i = u.find(HERO_PREFIX)
    if i >= 0:
        return u[i:]
    for fragments, owner in COMPANION_OWNERS:
        if any(f in u for f in fragments):
            return owner
    return u


class IdentityResolver:
    """第一阶段从英雄实体建立 英雄 -> 阵营 表，之后只读。"""

    def __init__(self) -> None:
        self.hero_teams: dict[str, str] = {}

    def register_hero(self, unit: str, team: str) -> None:
        if unit and team:
            self.hero_teams[unit.lower()] = team

    def owner_of(self, unit: str | None) -> str:
        return normalize_owner(unit)

    def team_of(self, unit: str | None) -> str:
        """先查英雄阵营表（含召唤物归属），再按单位名推断。"""
        if not unit:
            return ""
        team = self.hero_teams.get(unit.lower())
        if team:
            return team
        team = self.hero_teams.get(normalize_owner(unit))
        if team:
            return team
        return team_from_name(unit)
