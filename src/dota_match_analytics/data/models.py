"""通用数据模型：录像原始记录、归一化事件、眼位、控制、团战、目标等。"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal, Union

TEAM_RADIANT = "Radiant"
TEAM_DIRE = "Dire"

WardType = Literal["observer", "sentry"]


class EventKind(str, Enum):
    """归一化事件类型。"""
    DAMAGE = "damage"
    HEAL = "heal"
    DEATH = "death"
    ABILITY_CAST = "ability_cast"
    ITEM_USE = "item_use"
    ITEM_PICKUP = "item_pickup"
    PURCHASE = "purchase"
    MODIFIER_ADD = "modifier_add"
    MODIFIER_REMOVE = "modifier_remove"
    GOLD = "gold"
    XP = "xp"
    BUYBACK = "buyback"
    RUNE = "rune"
    GLYPH = "glyph"
    SCAN = "scan"
    BUILDING_KILL = "building_kill"
    HERO_DEATH = "hero_death"
    ROSHAN_KILL = "roshan_kill"
    AEGIS_PICKUP = "aegis_pickup"
    AEGIS_STATUS = "aegis_status"
    AEGIS_LOST = "aegis_lost"
    SHARD_PICKUP = "shard_pickup"
    CHEESE_PICKUP = "cheese_pickup"


COMBAT_KINDS = frozenset({EventKind.DAMAGE, EventKind.HEAL, EventKind.DEATH})


# ---- 解析器提供的三类原始记录 ----

@dataclass(frozen=True)
class EntityRecord:
    """实体创建/更新。"""
    created: bool
    dt_class: str
    properties: dict[str, Any] = field(default_factory=dict)
    index: int | None = None  # 实体句柄，可用于追踪同一实体的更新


@dataclass(frozen=True)
class GameEventRecord:
    """具名游戏事件。"""
    name: str
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CombatLogRecord:
    """战斗日志条目。"""
    timestamp: Any
    log_type: str
    attacker: str | None = ""
    target: str | None = ""
    inflictor: str | None = ""
    value: Any = 0


RawRecord = Union[EntityRecord, GameEventRecord, CombatLogRecord]


@dataclass
class NormalizedEvent:
    """归一化后的单条事件；time 未知时为 -1。"""
    time: int
    kind: EventKind
    actor: str = ""
    target: str = ""
    inflictor: str = ""
    value: int = 0
    owner: str = ""   # actor 所属英雄
    team: str = ""
    is_ult: bool = False
    neutral: bool = False
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["kind"] = self.kind.value
        return d


@dataclass
class WardRecord:
    """一次插眼（真眼/假眼）。removed_* 在对应的眼死亡事件出现时写入一次。"""
    time: int
    player: str
    owner: str
    team: str
    type: WardType
    removed_at: int | None = None
    removed_by: str | None = None
    lifetime: int | None = None
    expected_lifetime: int | None = None
    effective_ratio: float | None = None
    deward_source_time: int | None = None
    deward_source_player: str | None = None
    x: float | None = None
    y: float | None = None

    @property
    def item(self) -> str:
        return f"item_ward_{self.type}"

    @property
    def resolved(self) -> bool:
        return self.removed_at is not None

    @property
    def has_position(self) -> bool:
        return self.x is not None and self.y is not None

    def to_dict(self) -> dict[str, Any]:
        d = {k: v for k, v in asdict(self).items() if v is not None}
        d["item"] = self.item
        d["dewarded"] = self.resolved
        return d


@dataclass
class WardEntity:
    """眼位实体的世界坐标（最后一次已知位置）。"""
    x: float
    y: float
    team: str
    type: WardType
    index: int | None = None


@dataclass(frozen=True)
class PositionSample:
    time: int
    x: float
    y: float


@dataclass
class CCInterval:
    """一次已闭合的控制区间。"""
    target: str
    modifier: str
    category: str
    source: str
    start: int
    end: int
    duration: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class GoldXpDelta:
    """战斗日志中的金钱/经验获取，team 为获得方。"""
    time: int
    team: str
    gold: int = 0
    xp: int = 0


@dataclass
class Fight:
    """一次团战：按时间间隔切分出的战斗事件簇，第二阶段补充富化字段。"""
    start: int
    end: int
    participants: list[str]
    events: list[NormalizedEvent]
    swing: dict[str, Any] = field(default_factory=dict)
    spatial_groups: list[dict[str, Any]] = field(default_factory=list)
    damage_proxy_by_actor: dict[str, int] | None = None
    ults_count: int = 0
    ults_by_caster: dict[str, int] = field(default_factory=dict)
    buybacks_count: int = 0
    buybacks_by_player: dict[str, int] = field(default_factory=dict)
    by_actor: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def duration(self) -> int:
        return max(0, self.end - self.start)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "start": self.start,
            "end": self.end,
            "duration": self.duration,
            "participants": list(self.participants),
            "participants_count": len(self.participants),
            "events": [ev.to_dict() for ev in self.events],
            "swing": dict(self.swing),
            "ults_count": self.ults_count,
            "ults_by_caster": dict(self.ults_by_caster),
            "buybacks_count": self.buybacks_count,
            "buybacks_by_player": dict(self.buybacks_by_player),
            "by_actor": {k: dict(v) for k, v in self.by_actor.items()},
        }
        if self.spatial_groups:
            d["spatial_groups"] = [dict(g) for g in self.spatial_groups]
        if self.damage_proxy_by_actor is not None:
            d["damage_proxy_by_actor"] = dict(self.damage_proxy_by_actor)
        return d


@dataclass
class ObjectiveEvent:
    """目标类事件：拆建筑、英雄阵亡、雕文、扫描。"""
    time: int
    kind: EventKind
    target: str = ""
    by: str = ""
    team: str = ""         # 雕文/扫描的使用方
    team_target: str = ""
    team_by: str = ""
    seq: int = 0
    chain_id: int = 0
    swing: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["event"] = self.kind.value
        del d["kind"]
        return d


@dataclass
class WardHotspot:
    x: float
    y: float
    count: int
    by_type: dict[str, int]
    by_team: dict[str, int]
    eps: float
    minpts: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class VisionImpactRecord:
    """单个真眼在插下后固定窗口内的视野价值估计。"""
    time: int
    player: str
    team: str
    type: str
    window: int
    kills_for_team_window: int = 0
    kills_against_team_window: int = 0
    fights_in_window: int = 0
    favorable_fights_window: int = 0
    tracked_enemy_heroes_estimate: int = 0
    movement_events_estimate: int = 0
    efficiency_score: float = 0.0
    ward_x: float | None = None
    ward_y: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class RoshanSummary:
    """肉山/不朽盾/魔晶/奶酪状态；未知值用 -1 / 空串。"""
    kill_time: int = -1
    killer: str = ""
    aegis_holder: str = ""
    aegis_pickup_time: int = -1
    aegis_status: str = ""
    aegis_status_time: int = -1
    aegis_lost_time: int = -1
    shard_holder: str = ""
    shard_pickup_time: int = -1
    cheese_holder: str = ""
    cheese_pickup_time: int = -1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
