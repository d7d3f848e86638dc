"""单次分析的全部可变状态与阈值配置。每场比赛构造一次，分析结束即丢弃。"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

from ..data.models import (
    Fight,
    GoldXpDelta,
    NormalizedEvent,
    ObjectiveEvent,
    RoshanSummary,
    WardEntity,
)
from .fights import FightSegmenter
from .identity import IdentityResolver
from .trackers import CCTracker, PositionSampler, WardLifecycleTracker


@dataclass(frozen=True)
class AnalysisSettings:
    """分析用到的全部时间窗口（秒）与空间阈值（游戏单位）。"""
    fight_gap: int = 20
    swing_tail: int = 20
    activity_tail: int = 2
    assist_window: int = 10
    objective_chain_gap: int = 15
    objective_swing_window: int = 90
    pickoff_window: int = 45
    fight_match_before: int = 5
    fight_match_after: int = 10
    vision_window: int = 60
    vision_radius: float = 1600.0
    deward_lookback: int = 60
    observer_expected_lifetime: int = 420
    sentry_expected_lifetime: int = 90
    position_sample_step: int = 2
    hotspot_eps: float = 1200.0
    hotspot_min_pts: int = 3
    roshan_window: int = 60
    lead_bucket: int = 60
    cc_near_death_window: int = 2
    early_game_end: int = 420

    @classmethod
    def from_config(cls, cfg: dict[str, Any] | None = None) -> "AnalysisSettings":
        """从 load_config() 的 analysis 段构造；未知键忽略。"""
        if cfg is None:
            from ..config import load_config
            cfg = load_config()
        section = cfg.get("analysis") or {}
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name in section and section[f.name] is not None:
                try:
                    kwargs[f.name] = type(f.default)(section[f.name])
                except (TypeError, ValueError, OverflowError) as e:
                    raise ValueError(f"analysis.{f.name}: 无效的值 {section[f.name]!r}") from e
        return cls(**kwargs)


@dataclass
class AnalysisState:
    """贯穿第一阶段（逐条摄入）与第二阶段（批量关联）的上下文。"""
    settings: AnalysisSettings = field(default_factory=AnalysisSettings)
    identity: IdentityResolver = field(default_factory=IdentityResolver)
    cc: CCTracker = field(default_factory=CCTracker)
    wards: WardLifecycleTracker | None = None
    positions: PositionSampler | None = None
    segmenter: FightSegmenter | None = None

    ward_entities: list[WardEntity] = field(default_factory=list)
    ward_entity_by_index: dict[int, WardEntity] = field(default_factory=dict)
    combat_events: list[NormalizedEvent] = field(default_factory=list)
    smokes: list[NormalizedEvent] = field(default_factory=list)
    item_events: list[NormalizedEvent] = field(default_factory=list)
    item_uses: list[NormalizedEvent] = field(default_factory=list)
    runes: list[NormalizedEvent] = field(default_factory=list)
    buybacks: list[NormalizedEvent] = field(default_factory=list)
    ability_casts: list[NormalizedEvent] = field(default_factory=list)
    objectives: list[ObjectiveEvent] = field(default_factory=list)
    gold_xp: list[GoldXpDelta] = field(default_factory=list)
    roshan: RoshanSummary = field(default_factory=RoshanSummary)
    fights: list[Fight] = field(default_factory=list)

    clock: int = 0  # 已见战斗日志的最大时间
    records_seen: int = 0
    records_skipped: int = 0

    def __post_init__(self) -> None:
        s = self.settings
        if self.wards is None:
            self.wards = WardLifecycleTracker(
                deward_lookback=s.deward_lookback,
                observer_expected_lifetime=s.observer_expected_lifetime,
                sentry_expected_lifetime=s.sentry_expected_lifetime,
            )
        if self.positions is None:
            self.positions = PositionSampler(step=s.position_sample_step)
        if self.segmenter is None:
            self.segmenter = FightSegmenter(gap=s.fight_gap)
