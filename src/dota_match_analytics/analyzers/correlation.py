"""
跨数据流的时间/空间关联：
目标链与目标后经济摆动、抓人 -> 推进关联、真眼视野价值、肉山窗口、经济领先曲线与领先易主。
"""
from __future__ import annotations

import math
from collections import defaultdict
from typing import Any, Iterable, Sequence

from ..data.models import (
    COMBAT_KINDS,
    TEAM_DIRE,
    TEAM_RADIANT,
    EventKind,
    Fight,
    GoldXpDelta,
    NormalizedEvent,
    ObjectiveEvent,
    VisionImpactRecord,
    WardEntity,
    WardRecord,
)
from .fights import team_swing
from .identity import IdentityResolver, is_hero, normalize_owner
from .trackers import PositionSampler

BUILDING_KINDS = ("barracks", "outpost", "tower", "ancient", "other")


def classify_building(target: str) -> str:
    """建筑名 -> barracks / outpost / tower / ancient / other。"""
    t = (target or "").lower()
    if "barracks" in t or "rax" in t:
        return "barracks"
    if "outpost" in t:
        return "outpost"
    if "tower" in t:
        return "tower"
    if "fort" in t:
        return "ancient"
    return "other"


# ---- 目标 ----

def attach_objective_swings(objectives: Iterable[ObjectiveEvent], gold_xp: list[GoldXpDelta], window: int = 90) -> None:
    for ev in objectives:
        if ev.time < 0:
            continue
        gold, xp, _ = team_swing(gold_xp, ev.time, ev.time + window)
        ev.swing = {"gold": gold, "xp": xp}


def chain_objectives(objectives: Iterable[ObjectiveEvent], gap: int = 15) -> list[ObjectiveEvent]:
    """按时间排序并编号；与上一事件间隔超过 gap 秒开始新的 chain。"""
    ordered = sorted(objectives, key=lambda o: o.time)
    last: int | None = None
    chain = 0
    for seq, ev in enumerate(ordered, start=1):
        if last is None or ev.time - last > gap:
            chain += 1
        last = ev.time
        ev.seq = seq
        ev.chain_id = chain
    return ordered


def nearest_fight(fights: Sequence[Fight], t: int, before: int = 5, after: int = 10) -> Fight | None:
    """优先取窗口 [start-before, end+after] 包含 t 的团战，否则取时间距离最近的。"""
    best: Fight | None = None
    best_dt: int | None = None
    for f in fights:
        if f.start - before <= t <= f.end + after:
            return f
        dt = max(0, f.start - t, t - f.end)
        if best_dt is None or dt < best_dt:
            best, best_dt = f, dt
    return best


def pickoff_sequences(
    ordered: Sequence[ObjectiveEvent],
    fights: Sequence[Fight],
    window: int = 45,
    before: int = 5,
    after: int = 10,
) -> tuple[dict[str, int], list[dict[str, Any]]]:
    """
    对每次拆建筑，向前找 window 秒内最近的英雄阵亡。
    返回 (按建筑类型计数, 明细列表)；ordered 须已按时间排序。
    """
    counts = {f"pickoff_to_{k}": 0 for k in ("tower", "outpost", "barracks", "ancient")}
    details: list[dict[str, Any]] = []
    for i, ev in enumerate(ordered):
        if ev.kind is not EventKind.BUILDING_KILL:
            continue
        pickoff: ObjectiveEvent | None = None
        for prev in reversed(ordered[:i]):
            if prev.kind is not EventKind.HERO_DEATH:
                continue
            if 0 <= prev.time and ev.time - window <= prev.time:
                pickoff = prev
            break
        if pickoff is None:
            continue
        kind = classify_building(ev.target)
        key = f"pickoff_to_{kind}"
        if key in counts:
            counts[key] += 1
        fight = nearest_fight(fights, ev.time, before, after)
        details.append({
            "pickoff_time": pickoff.time,
            "objective_time": ev.time,
            "delta": ev.time - pickoff.time,
            "objective_kind": kind,
            "team_target": ev.team_target,
            "swing_gold": ev.swing.get("gold", 0),
            "swing_xp": ev.swing.get("xp", 0),
            "participants": list(fight.participants) if fight else [],
        })
    return counts, details


# ---- 眼位坐标与视野价值 ----

def assign_ward_positions(wards: Iterable[WardRecord], entities: Sequence[WardEntity]) -> None:
    """按 (阵营, 类型) 分组，插眼记录按时间顺序依次对应眼位实体的创建顺序。"""
    by_key: dict[tuple[str, str], list[WardEntity]] = defaultdict(list)
    for we in entities:
        if we.team and we.type:
            by_key[(we.team, we.type)].append(we)
    next_idx: dict[tuple[str, str], int] = defaultdict(int)
    for w in sorted(wards, key=lambda r: r.time):
        if not w.team:
            continue
        key = (w.team, w.type)
        idx = next_idx[key]
        candidates = by_key.get(key, [])
        if idx < len(candidates):
            w.x, w.y = candidates[idx].x, candidates[idx].y
            next_idx[key] = idx + 1


def _sample(sampler: PositionSampler, unit: str, t: int):
    s = sampler.position_at(unit, t)
    if s is None and unit:
        owner = normalize_owner(unit)
        if owner != unit:
            s = sampler.position_at(owner, t)
    return s


def fight_centroid(fight: Fight, sampler: PositionSampler) -> tuple[float, float] | None:
    """参战单位在团战开始时（及之前）最后位置的均值。"""
    xs: list[float] = []
    ys: list[float] = []
    for unit in fight.participants:
        s = _sample(sampler, unit, fight.start)
        if s is not None:
            xs.append(s.x)
            ys.append(s.y)
    if not xs:
        return None
    return sum(xs) / len(xs), sum(ys) / len(ys)


def is_favorable(swing: dict[str, Any], team: str) -> bool:
    g = swing.get("gold", 0) or 0
    x = swing.get("xp", 0) or 0
    if team == TEAM_RADIANT:
        return g > 0 or x > 0
    if team == TEAM_DIRE:
        return g < 0 or x < 0
    return False


def _opposing(team: str, other: str) -> bool:
    return bool(team) and other in (TEAM_RADIANT, TEAM_DIRE) and other != team


def score_ward(
    ward: WardRecord,
    fights: Sequence[Fight],
    identity: IdentityResolver,
    sampler: PositionSampler,
    window: int = 60,
    radius: float = 1600.0,
) -> VisionImpactRecord:
    """
    单个真眼的视野价值：插眼后 window 秒内附近的敌方英雄活动与团战结果。
    efficiency = 0.5*敌方英雄数 + 0.25*多次出现的敌方英雄数 + 1.0*有利团战
                 + 0.75*(本方击杀 - 被击杀)
    """
    ts, te = ward.time, ward.time + window
    team = ward.team
    located = ward.has_position

    def near(unit: str, t: int) -> bool:
        s = _sample(sampler, unit, t)
        return s is not None and math.hypot(s.x - ward.x, s.y - ward.y) <= radius

    kills_for = kills_against = fights_in_window = favorable = 0
    enemy_counts: dict[str, int] = defaultdict(int)
    for f in fights:
        if ts <= f.start <= te:
            spatial_ok = not located
            if located:
                c = fight_centroid(f, sampler)
                spatial_ok = c is not None and math.hypot(c[0] - ward.x, c[1] - ward.y) <= radius
            if spatial_ok:
                fights_in_window += 1
                if is_favorable(f.swing, team):
                    favorable += 1
        for ev in f.events:
            if ev.time < ts or ev.time > te or ev.kind not in COMBAT_KINDS:
                continue
            if located and not (near(ev.actor, ev.time) or near(ev.target, ev.time)):
                continue
            for unit in (ev.actor, ev.target):
                if not unit:
                    continue
                hero = normalize_owner(unit)
                if is_hero(hero) and _opposing(team, identity.team_of(unit)):
                    enemy_counts[hero] += 1
            if ev.kind is EventKind.DEATH and team:
                if identity.team_of(ev.actor) == team:
                    kills_for += 1
                if identity.team_of(ev.target) == team:
                    kills_against += 1

    tracked = sum(1 for c in enemy_counts.values() if c > 0)
    movement = sum(1 for c in enemy_counts.values() if c >= 2)
    efficiency = tracked * 0.5 + movement * 0.25 + favorable * 1.0 + (kills_for - kills_against) * 0.75
    return VisionImpactRecord(
        time=ts,
        player=ward.player,
        team=team,
        type=ward.item,
        window=window,
        kills_for_team_window=kills_for,
        kills_against_team_window=kills_against,
        fights_in_window=fights_in_window,
        favorable_fights_window=favorable,
        tracked_enemy_heroes_estimate=tracked,
        movement_events_estimate=movement,
        efficiency_score=efficiency,
        ward_x=ward.x,
        ward_y=ward.y,
    )


def vision_impact(
    wards: Iterable[WardRecord],
    fights: Sequence[Fight],
    identity: IdentityResolver,
    sampler: PositionSampler,
    window: int = 60,
    radius: float = 1600.0,
) -> list[VisionImpactRecord]:
    return [
        score_ward(w, fights, identity, sampler, window, radius)
        for w in wards
        if w.type == "observer" and w.time >= 0
    ]


_VISION_SUM_FIELDS = (
    "kills_for_team_window",
    "kills_against_team_window",
    "fights_in_window",
    "favorable_fights_window",
    "tracked_enemy_heroes_estimate",
    "movement_events_estimate",
)


def vision_rollup(records: Iterable[VisionImpactRecord], key: str) -> dict[str, dict[str, Any]]:
    """按 player 或 team 汇总，并给出 efficiency_score_avg。"""
    out: dict[str, dict[str, Any]] = {}
    for r in records:
        k = getattr(r, key)
        if not k:
            continue
        node = out.setdefault(k, {f: 0 for f in _VISION_SUM_FIELDS} | {"efficiency_score_sum": 0.0, "_count": 0})
        for f in _VISION_SUM_FIELDS:
            node[f] += getattr(r, f)
        node["efficiency_score_sum"] += r.efficiency_score
        node["_count"] += 1
    for node in out.values():
        node["efficiency_score_avg"] = node["efficiency_score_sum"] / node["_count"]
    return out


# ---- 肉山 ----

def _in_window(t: int, start: int, end: int) -> bool:
    return start <= t <= end


def roshan_context(
    kill_time: int,
    wards: Iterable[WardRecord],
    smokes: Iterable[NormalizedEvent],
    runes: Iterable[NormalizedEvent],
    window: int = 60,
) -> dict[str, int]:
    """肉山被击杀前后 window 秒内的插眼、开雾、神符数量；无击杀时为空。"""
    if kill_time < 0:
        return {}
    rs, re_ = kill_time - window, kill_time + window
    return {
        "wards": sum(1 for w in wards if _in_window(w.time, rs, re_)),
        "smokes": sum(1 for s in smokes if _in_window(s.time, rs, re_)),
        "runes": sum(1 for r in runes if _in_window(r.time, rs, re_)),
        "window": window,
    }


def roshan_control(
    kill_time: int,
    wards: Iterable[WardRecord],
    fights: Iterable[Fight],
    identity: IdentityResolver,
    window: int = 60,
) -> dict[str, Any]:
    """肉山窗口内双方的真眼/假眼数量，以及出现在窗口内团战中的英雄数。"""
    if kill_time < 0:
        return {}
    rs, re_ = kill_time - window, kill_time + window
    wards_by_team: dict[str, int] = defaultdict(int)
    sentries_by_team: dict[str, int] = defaultdict(int)
    for w in wards:
        if not _in_window(w.time, rs, re_) or not w.team:
            continue
        if w.type == "observer":
            wards_by_team[w.team] += 1
        else:
            sentries_by_team[w.team] += 1
    present: dict[str, None] = {}
    for f in fights:
        if f.end < rs or f.start > re_:
            continue
        for p in f.participants:
            present.setdefault(p, None)
    heroes_by_team: dict[str, int] = defaultdict(int)
    for unit in present:
        team = identity.hero_teams.get(unit.lower(), "")
        if team:
            heroes_by_team[team] += 1
    return {
        "wards_by_team": dict(wards_by_team),
        "sentries_by_team": dict(sentries_by_team),
        "heroes_presence_by_team": dict(heroes_by_team),
        "window": window,
    }


# ---- 经济领先 ----

def economy_lead_series(gold_xp: Iterable[GoldXpDelta], bucket: int = 60) -> list[dict[str, int]]:
    """按 bucket 秒分桶（天辉为正、夜魇为负），输出每桶结束时的累计领先。"""
    buckets: dict[int, list[int]] = defaultdict(lambda: [0, 0])
    for gx in gold_xp:
        if gx.time < 0:
            continue
        sign = 1 if gx.team == TEAM_RADIANT else -1 if gx.team == TEAM_DIRE else 0
        if sign == 0:
            continue
        b = buckets[(gx.time // bucket) * bucket]
        b[0] += sign * gx.gold
        b[1] += sign * gx.xp
    series: list[dict[str, int]] = []
    cum_gold = cum_xp = 0
    for t in sorted(buckets):
        cum_gold += buckets[t][0]
        cum_xp += buckets[t][1]
        series.append({"time": t, "lead_gold": cum_gold, "lead_xp": cum_xp})
    return series


def _sign(v: float) -> int:
    return (v > 0) - (v < 0)


def count_lead_switches(values: Iterable[float]) -> int:
    """领先方变化次数；0 值不打断同号区间。"""
    prev = 0
    switches = 0
    for v in values:
        s = _sign(v)
        if s == 0:
            continue
        if prev and s != prev:
            switches += 1
        prev = s
    return switches


def lead_switch_events(series: Sequence[dict[str, int]]) -> dict[str, Any]:
    switches: list[dict[str, Any]] = []
    for metric in ("gold", "xp"):
        prev = 0
        for pt in series:
            s = _sign(pt[f"lead_{metric}"])
            if s == 0:
                continue
            if prev and s != prev:
                switches.append({
                    "time": pt["time"],
                    "metric": metric,
                    "leader": TEAM_RADIANT if s > 0 else TEAM_DIRE,
                })
            prev = s
    switches.sort(key=lambda e: (e["time"], e["metric"]))
    return {
        "gold": count_lead_switches(pt["lead_gold"] for pt in series),
        "xp": count_lead_switches(pt["lead_xp"] for pt in series),
        "switches": switches,
    }
