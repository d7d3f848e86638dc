"""
比赛分析引擎。

第一阶段：逐条摄入解析器记录（实体、游戏事件、战斗日志），归一化后分发到
各追踪器与集合；单条记录出错只跳过该条。
第二阶段：数据流结束后依次执行团战富化、眼位坐标匹配、热点聚类、目标链、
视野价值、肉山窗口、经济领先和汇总表，输出一份分析文档。
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Iterable

from .. import __version__
from ..data.models import (
    CombatLogRecord,
    EntityRecord,
    EventKind,
    GoldXpDelta,
    NormalizedEvent,
    ObjectiveEvent,
    RawRecord,
    WardEntity,
)
from ..parsers.normalizer import EventNormalizationError, EventNormalizer
from . import correlation, rollups
from .fights import enrich_fight
from .hotspots import ward_hotspots
from .identity import hero_unit_from_class, is_hero, normalize_owner, team_label
from .state import AnalysisSettings, AnalysisState

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.2.0"

SMOKE_ITEM = "item_smoke_of_deceit"
WARD_ITEMS = {"item_ward_observer": "observer", "item_ward_sentry": "sentry"}
AEGIS_ITEM = "item_aegis"
WARD_CLASS_PREFIXES = ("CDOTA_NPC_Observer_Ward", "CDOTA_NPC_ObserverWard")

_BUILDING_FRAGMENTS = ("tower", "rax", "fort", "barracks", "outpost")

# 单条事件处理中可被吞掉的错误
_RECOVERABLE = (EventNormalizationError, ValueError, TypeError, KeyError, AttributeError, OverflowError)


def is_building(name: str) -> bool:
    n = (name or "").lower()
    return any(f in n for f in _BUILDING_FRAGMENTS)


def is_ward(name: str) -> bool:
    """眼位单位；英雄及其召唤物（arc_warden 等）不算。"""
    n = (name or "").lower()
    return "ward" in n and not is_hero(normalize_owner(n))


def _point(x: Any, y: Any) -> tuple[float, float] | None:
    if isinstance(x, bool) or isinstance(y, bool):
        return None
    if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
        return None
    try:
        fx, fy = float(x), float(y)
    except OverflowError:
        return None
    if not (math.isfinite(fx) and math.isfinite(fy)):
        return None
    return fx, fy


def entity_position(props: Mapping[str, Any]) -> tuple[float, float] | None:
    """m_vecOrigin 优先；为 (0,0)、缺失或非有限值时退回 m_cellX/m_cellY。"""
    pos: tuple[float, float] | None = None
    origin = props.get("m_vecOrigin")
    if isinstance(origin, (list, tuple)) and len(origin) >= 2:
        pos = _point(origin[0], origin[1])
    if pos is None or pos == (0.0, 0.0):
        cell = _point(props.get("m_cellX"), props.get("m_cellY"))
        if cell is not None:
            pos = cell
    return pos


class MatchAnalyzer:
    """单场比赛的一次性分析器：feed()/ingest() 摄入记录，finish() 输出文档。"""

    def __init__(self, settings: AnalysisSettings | None = None, ult_names: Iterable[str] | None = None):
        self.state = AnalysisState(settings=settings or AnalysisSettings())
        self.normalizer = EventNormalizer(self.state.identity, set(ult_names or ()))

    # ---- 第一阶段 ----

    def ingest(self, records: Iterable[RawRecord]) -> "MatchAnalyzer":
        for record in records:
            self.feed(record)
        st = self.state
        logger.info("ingested %d records (%d skipped)", st.records_seen, st.records_skipped)
        return self

    def feed(self, record: RawRecord) -> bool:
        """处理一条记录；出错时记录日志并跳过，返回是否成功。"""
        st = self.state
        st.records_seen += 1
        try:
            if isinstance(record, EntityRecord):
                self._on_entity(record)
                return True
            ev = self.normalizer.normalize(record)
            if ev is not None:
                self._dispatch(ev)
            if isinstance(record, CombatLogRecord) and ev is not None and ev.time >= 0:
                st.clock = max(st.clock, ev.time)
        except _RECOVERABLE as e:
            st.records_skipped += 1
            logger.debug("skipping record %r: %s", record, e)
            return False
        return True

    def _on_entity(self, rec: EntityRecord) -> None:
        props = rec.properties
        if not isinstance(props, Mapping):
            raise EventNormalizationError(f"entity {rec.dt_class!r} has no property bag")
        st = self.state
        dt = rec.dt_class or ""
        team = team_label(props.get("m_iTeamNum"))
        pos = entity_position(props)

        hero = hero_unit_from_class(dt)
        if hero:
            if rec.created or hero not in st.identity.hero_teams:
                st.identity.register_hero(hero, team)
                st.positions.register(hero)
            if not rec.created and pos is not None:
                st.positions.observe(hero, st.clock, pos[0], pos[1])
            return

        if dt.startswith(WARD_CLASS_PREFIXES):
            known = st.ward_entity_by_index.get(rec.index) if rec.index is not None else None
            if known is not None:
                if pos is not None:
                    known.x, known.y = pos
                return
            if not rec.created or not team:
                return
            x, y = pos if pos is not None else (0.0, 0.0)
            entity = WardEntity(x=x, y=y, team=team,
                                type="sentry" if "TrueSight" in dt else "observer",
                                index=rec.index)
            st.ward_entities.append(entity)
            if rec.index is not None:
                st.ward_entity_by_index[rec.index] = entity

    def _dispatch(self, ev: NormalizedEvent) -> None:
        st = self.state
        kind = ev.kind

        if kind is EventKind.ITEM_USE:
            item = ev.inflictor
            if item == SMOKE_ITEM:
                st.smokes.append(ev)
            if item in WARD_ITEMS:
                st.wards.place(ev.time, ev.actor, ev.owner, ev.team, WARD_ITEMS[item])
            if item == AEGIS_ITEM:
                st.roshan.aegis_holder = ev.actor
                st.roshan.aegis_pickup_time = ev.time
            if item:
                st.item_uses.append(ev)
        elif kind in (EventKind.PURCHASE, EventKind.ITEM_PICKUP):
            st.item_events.append(ev)
        elif kind in (EventKind.DAMAGE, EventKind.HEAL, EventKind.DEATH):
            if kind is EventKind.DEATH:
                self._on_death(ev)
            st.combat_events.append(ev)
            st.segmenter.feed(ev)
        elif kind is EventKind.MODIFIER_ADD:
            st.cc.on_add(ev.time, ev.target, ev.inflictor, ev.actor)
            mod = ev.inflictor.lower()
            if "rune_" in mod:
                # 神符 buff 加在拾取者身上
                st.runes.append(NormalizedEvent(
                    time=ev.time, kind=EventKind.RUNE, actor=ev.target, inflictor=mod,
                    owner=st.identity.owner_of(ev.target),
                    team=st.identity.team_of(ev.target),
                ))
        elif kind is EventKind.MODIFIER_REMOVE:
            st.cc.on_remove(ev.time, ev.target, ev.inflictor)
        elif kind in (EventKind.GOLD, EventKind.XP):
            gold = ev.value if kind is EventKind.GOLD else 0
            xp = ev.value if kind is EventKind.XP else 0
            st.gold_xp.append(GoldXpDelta(time=ev.time, team=ev.team, gold=gold, xp=xp))
        elif kind is EventKind.BUYBACK:
            st.buybacks.append(ev)
        elif kind is EventKind.ABILITY_CAST:
            st.ability_casts.append(ev)
        elif kind is EventKind.RUNE:
            st.runes.append(ev)
        elif kind in (EventKind.GLYPH, EventKind.SCAN):
            st.objectives.append(ObjectiveEvent(time=ev.time, kind=kind, team=ev.team))
        else:
            self._on_status(ev)

    def _on_death(self, ev: NormalizedEvent) -> None:
        st = self.state
        target = ev.target
        objective_kind = None
        if is_building(target):
            objective_kind = EventKind.BUILDING_KILL
        elif is_hero(target):
            objective_kind = EventKind.HERO_DEATH
        if objective_kind is not None:
            st.objectives.append(ObjectiveEvent(
                time=ev.time,
                kind=objective_kind,
                target=target,
                by=ev.actor,
                team_target=st.identity.team_of(target),
                team_by=st.identity.team_of(ev.actor),
            ))
        if "roshan" in target.lower():
            st.roshan.kill_time = ev.time
            st.roshan.killer = ev.actor
        if is_ward(target):
            st.wards.on_ward_death(ev.time, target, ev.actor)

    def _on_status(self, ev: NormalizedEvent) -> None:
        r = self.state.roshan
        kind = ev.kind
        if kind is EventKind.ROSHAN_KILL:
            r.kill_time, r.killer = ev.time, ev.actor
        elif kind is EventKind.AEGIS_PICKUP:
            r.aegis_holder, r.aegis_pickup_time = ev.actor, ev.time
        elif kind is EventKind.AEGIS_STATUS:
            r.aegis_status, r.aegis_status_time = ev.detail, ev.time
        elif kind is EventKind.AEGIS_LOST:
            r.aegis_lost_time = ev.time
        elif kind is EventKind.SHARD_PICKUP:
            r.shard_holder, r.shard_pickup_time = ev.actor, ev.time
        elif kind is EventKind.CHEESE_PICKUP:
            r.cheese_holder, r.cheese_pickup_time = ev.actor, ev.time

    # ---- 第二阶段 ----

    def finish(self, match_id: int | None = None) -> dict[str, Any]:
        st = self.state
        s = st.settings

        st.fights = st.segmenter.finish()
        ward_records = st.wards.records
        for w in ward_records:
            if not w.team:
                w.team = st.identity.team_of(w.player)
        correlation.assign_ward_positions(ward_records, st.ward_entities)

        for f in st.fights:
            enrich_fight(f, st.gold_xp, st.ability_casts, st.buybacks,
                         swing_tail=s.swing_tail, activity_tail=s.activity_tail,
                         assist_window=s.assist_window)

        correlation.attach_objective_swings(st.objectives, st.gold_xp, s.objective_swing_window)
        objectives = correlation.chain_objectives(st.objectives, s.objective_chain_gap)
        sequences, chain_details = correlation.pickoff_sequences(
            objectives, st.fights, s.pickoff_window, s.fight_match_before, s.fight_match_after)

        hotspots = ward_hotspots(st.ward_entities, s.hotspot_eps, s.hotspot_min_pts)
        vision = correlation.vision_impact(ward_records, st.fights, st.identity, st.positions,
                                           s.vision_window, s.vision_radius)
        series = correlation.economy_lead_series(st.gold_xp, s.lead_bucket)

        aggregated: dict[str, Any] = {}
        aggregated.update(rollups.ability_usage(st.ability_casts))
        damage = rollups.damage_tables(st.combat_events)
        aggregated.update({k: v for k, v in damage.items() if k not in ("damage_summary", "healing_summary")})
        aggregated["cc_by_attacker"] = {k: dict(v) for k, v in st.cc.by_attacker.items()}
        aggregated["cc_instances"] = [c.to_dict() for c in st.cc.instances]
        aggregated["wards_by_player"], aggregated["dewards_by_player"] = rollups.wards_by_player(ward_records)
        aggregated["rune_pickups_by_player"] = rollups.rune_pickups_by_player(st.runes)
        aggregated["smokes_by_player"] = rollups.count_by_actor(st.smokes)
        aggregated["item_pickups_by_player"] = rollups.item_pickups_by_player(st.item_events)
        aggregated.update(rollups.buyback_tables(st.buybacks))
        aggregated["objectives_by_team"] = rollups.objectives_by_team(objectives)
        aggregated["fights_overview"] = rollups.fights_overview(st.fights)
        first_purchase = rollups.first_purchases(st.item_events)
        aggregated["first_purchase_by_player_by_item"] = first_purchase
        aggregated["power_spikes_by_player"] = rollups.power_spikes(st.ability_casts, first_purchase)
        aggregated["cc_efficiency"] = rollups.cc_efficiency(st.cc.instances, st.fights, s.cc_near_death_window)
        aggregated["economy_lead_series"] = series
        aggregated["lead_switch_events"] = correlation.lead_switch_events(series)
        aggregated["objective_sequences"] = sequences
        aggregated["ward_hotspots"] = [h.to_dict() for h in hotspots]
        aggregated["vision_impact_by_ward"] = [v.to_dict() for v in vision]
        aggregated["vision_impact_by_player"] = correlation.vision_rollup(vision, "player")
        aggregated["vision_impact_by_team"] = correlation.vision_rollup(vision, "team")
        aggregated["objective_chain_details"] = chain_details
        context = correlation.roshan_context(st.roshan.kill_time, ward_records, st.smokes, st.runes, s.roshan_window)
        if context:
            aggregated["roshan_context"] = context
            aggregated["roshan_control"] = correlation.roshan_control(
                st.roshan.kill_time, ward_records, st.fights, st.identity, s.roshan_window)
        aggregated["lane_roles_by_player"] = rollups.lane_roles(
            st.ability_casts, st.combat_events, ward_records, st.smokes, st.identity, s.early_game_end)

        enriched = {
            "wards_events": [w.to_dict() for w in ward_records],
            "smokes_events": [{"time": e.time, "player": e.actor, "owner": e.owner} for e in st.smokes],
            "item_events": [_item_event(e) for e in st.item_events],
            "runes_events": [_rune_event(e) for e in st.runes],
            "roshan_summary": st.roshan.to_dict(),
            "objectives_basic": [o.to_dict() for o in objectives],
            "buybacks": [{"time": b.time, "player": b.actor} for b in st.buybacks],
            "fights_simple": [f.to_dict() for f in st.fights],
            "damage_summary": damage["damage_summary"],
            "healing_summary": damage["healing_summary"],
            "cc_summary": {k: dict(v) for k, v in st.cc.by_target.items()},
            "ability_casts": [_ability_cast(e) for e in st.ability_casts],
            "item_uses": [{"time": e.time, "unit": e.actor, "owner": e.owner, "item": e.inflictor}
                          for e in st.item_uses],
            "ward_entities": [{"x": w.x, "y": w.y, "team": w.team, "type": w.type} for w in st.ward_entities],
            "position_samples": {
                hero: [[p.time, p.x, p.y] for p in samples]
                for hero, samples in st.positions.samples.items()
            },
            "aggregated_stats": aggregated,
        }
        logger.info("analysis finished: %d fights, %d wards, %d objectives",
                    len(st.fights), len(ward_records), len(objectives))
        return {
            "source": "dota-match-analytics",
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "match_id": match_id,
            "enriched": enriched,
            "meta": {
                "generator": "dota-match-analytics",
                "version": __version__,
                "schema_version": SCHEMA_VERSION,
                "notes": "timestamps in seconds; game events and combat log blended",
                "records_seen": st.records_seen,
                "records_skipped": st.records_skipped,
            },
        }


def _item_event(e: NormalizedEvent) -> dict[str, Any]:
    d: dict[str, Any] = {
        "time": e.time,
        "player": e.actor,
        "item": e.inflictor,
        "action": "purchased" if e.kind is EventKind.PURCHASE else "picked_up",
    }
    if e.neutral:
        d["neutral"] = True
    return d


def _rune_event(e: NormalizedEvent) -> dict[str, Any]:
    d: dict[str, Any] = {"time": e.time, "player": e.actor, "rune": e.inflictor}
    if e.detail:
        d["type"] = e.detail
    return d


def _ability_cast(e: NormalizedEvent) -> dict[str, Any]:
    d: dict[str, Any] = {"time": e.time, "caster": e.actor, "ability": e.inflictor, "is_ult": e.is_ult}
    if e.owner:
        d["owner_caster"] = e.owner
    return d


def analyze_match(
    records: Iterable[RawRecord],
    settings: AnalysisSettings | None = None,
    ult_names: Iterable[str] | None = None,
    match_id: int | None = None,
) -> dict[str, Any]:
    """一次性完成摄入与分析。"""
    return MatchAnalyzer(settings, ult_names).ingest(records).finish(match_id)
