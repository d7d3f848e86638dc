"""汇总表：按选手/阵营/物品/技能/攻击-目标对折叠事件、眼位与团战。"""
from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable, Sequence

from ..data.models import (
    TEAM_DIRE,
    TEAM_RADIANT,
    CCInterval,
    EventKind,
    Fight,
    NormalizedEvent,
    ObjectiveEvent,
    WardRecord,
)
from .correlation import classify_building
from .identity import IdentityResolver

SPIKE_ITEMS = {
    "item_black_king_bar": "bkb_purchase_time",
    "item_ultimate_scepter": "aghs_purchase_time",
    "item_aghanims_shard": "shard_purchase_time",
}

_BUILDING_BUCKETS = {
    "barracks": "barracks",
    "outpost": "outposts",
    "tower": "towers",
    "ancient": "ancients",
    "other": "buildings_other",
}


def _pair(*parts: str) -> str:
    return "|".join(p or "" for p in parts)


def ability_usage(casts: Iterable[NormalizedEvent]) -> dict[str, dict[str, int]]:
    by_caster: dict[str, int] = defaultdict(int)
    by_owner: dict[str, int] = defaultdict(int)
    by_ability: dict[str, int] = defaultdict(int)
    ults: dict[str, int] = defaultdict(int)
    for ac in casts:
        if ac.actor:
            by_caster[ac.actor] += 1
        if ac.inflictor:
            by_ability[ac.inflictor] += 1
        if ac.owner:
            by_owner[ac.owner] += 1
        if ac.is_ult and ac.actor:
            ults[ac.actor] += 1
    return {
        "ability_usage_by_caster": dict(by_caster),
        "ability_usage_by_owner": dict(by_owner),
        "ability_usage_by_ability": dict(by_ability),
        "ult_usage_by_caster": dict(ults),
    }


def damage_tables(events: Iterable[NormalizedEvent]) -> dict[str, dict[str, int]]:
    """伤害/治疗明细（attacker|target|inflictor）及各维度合计。"""
    summary: dict[str, int] = defaultdict(int)
    healing: dict[str, int] = defaultdict(int)
    by_attacker: dict[str, int] = defaultdict(int)
    by_target: dict[str, int] = defaultdict(int)
    by_pair: dict[str, int] = defaultdict(int)
    by_attacker_ability: dict[str, int] = defaultdict(int)
    for ev in events:
        if ev.kind is EventKind.HEAL:
            healing[_pair(ev.actor, ev.target, ev.inflictor)] += ev.value
            continue
        if ev.kind is not EventKind.DAMAGE:
            continue
        summary[_pair(ev.actor, ev.target, ev.inflictor)] += ev.value
        if ev.actor:
            by_attacker[ev.actor] += ev.value
            by_pair[_pair(ev.actor, ev.target)] += ev.value
            by_attacker_ability[_pair(ev.actor, ev.inflictor)] += ev.value
        if ev.target:
            by_target[ev.target] += ev.value
    return {
        "damage_summary": dict(summary),
        "healing_summary": dict(healing),
        "damage_by_attacker": dict(by_attacker),
        "damage_by_target": dict(by_target),
        "damage_by_pair": dict(by_pair),
        "damage_by_attacker_ability": dict(by_attacker_ability),
    }


def wards_by_player(wards: Iterable[WardRecord]) -> tuple[dict[str, dict[str, Any]], dict[str, int]]:
    """每名选手的插眼/被排/平均存活，以及排眼数。"""
    table: dict[str, dict[str, Any]] = {}
    dewards: dict[str, int] = defaultdict(int)
    life_sum: dict[tuple[str, str], int] = defaultdict(int)
    life_cnt: dict[tuple[str, str], int] = defaultdict(int)
    for w in wards:
        sub = table.setdefault(w.player, defaultdict(int))
        sub[f"{w.type}_placed"] += 1
        if w.resolved:
            sub[f"{w.type}_dewarded"] += 1
        if w.lifetime is not None and w.lifetime >= 0:
            life_sum[(w.player, w.type)] += w.lifetime
            life_cnt[(w.player, w.type)] += 1
        if w.removed_by:
            dewards[w.removed_by] += 1
            table.setdefault(w.removed_by, defaultdict(int))["dewards_made"] += 1
    for (player, ward_type), cnt in life_cnt.items():
        table[player][f"avg_{ward_type}_lifetime"] = life_sum[(player, ward_type)] / cnt
    return {p: dict(sub) for p, sub in table.items()}, dict(dewards)


def rune_pickups_by_player(runes: Iterable[NormalizedEvent]) -> dict[str, dict[str, int]]:
    out: dict[str, dict[str, int]] = {}
    for r in runes:
        sub = out.setdefault(r.actor, defaultdict(int))
        if r.inflictor:
            sub[r.inflictor] += 1
        sub["_total"] += 1
    return {p: dict(sub) for p, sub in out.items()}


def count_by_actor(events: Iterable[NormalizedEvent]) -> dict[str, int]:
    out: dict[str, int] = defaultdict(int)
    for ev in events:
        if ev.actor:
            out[ev.actor] += 1
    return dict(out)


def item_pickups_by_player(items: Iterable[NormalizedEvent]) -> dict[str, dict[str, int]]:
    out: dict[str, dict[str, int]] = {}
    for ev in items:
        if ev.kind is not EventKind.ITEM_PICKUP or not ev.actor or not ev.inflictor:
            continue
        sub = out.setdefault(ev.actor, defaultdict(int))
        sub[ev.inflictor] += 1
        sub["_total"] += 1
        if ev.neutral:
            sub["_neutral_total"] += 1
    return {p: dict(sub) for p, sub in out.items()}


def buyback_tables(buybacks: Iterable[NormalizedEvent]) -> dict[str, dict[str, int]]:
    counts: dict[str, int] = defaultdict(int)
    first: dict[str, int] = {}
    last: dict[str, int] = {}
    for bb in buybacks:
        if not bb.actor:
            continue
        counts[bb.actor] += 1
        if bb.time >= 0:
            first[bb.actor] = min(first.get(bb.actor, bb.time), bb.time)
            last[bb.actor] = max(last.get(bb.actor, bb.time), bb.time)
    return {
        "buybacks_by_player": dict(counts),
        "buybacks_first_time": first,
        "buybacks_last_time": last,
    }


def objectives_by_team(objectives: Iterable[ObjectiveEvent]) -> dict[str, dict[str, int]]:
    """建筑按失去方计数；雕文/扫描按使用方计数。"""
    out: dict[str, dict[str, int]] = {TEAM_RADIANT: defaultdict(int), TEAM_DIRE: defaultdict(int)}
    for ev in objectives:
        if ev.kind is EventKind.BUILDING_KILL:
            team, bucket = ev.team_target, _BUILDING_BUCKETS[classify_building(ev.target)]
        elif ev.kind is EventKind.GLYPH:
            team, bucket = ev.team, "glyphs_used"
        elif ev.kind is EventKind.SCAN:
            team, bucket = ev.team, "scans_used"
        else:
            continue
        if team in out:
            out[team][bucket] += 1
    return {t: dict(v) for t, v in out.items()}


def fights_overview(fights: Sequence[Fight]) -> dict[str, Any]:
    overview: dict[str, Any] = {
        "count": len(fights),
        "total_ults": sum(f.ults_count for f in fights),
        "total_buybacks": sum(f.buybacks_count for f in fights),
    }
    if fights:
        overview["avg_duration"] = sum(f.duration for f in fights) / len(fights)
    return overview


def first_purchases(items: Iterable[NormalizedEvent]) -> dict[str, dict[str, int]]:
    out: dict[str, dict[str, int]] = {}
    for ev in items:
        if ev.kind is not EventKind.PURCHASE or not ev.actor or not ev.inflictor or ev.time < 0:
            continue
        sub = out.setdefault(ev.actor, {})
        if ev.time < sub.get(ev.inflictor, ev.time + 1):
            sub[ev.inflictor] = ev.time
    return out


def power_spikes(casts: Iterable[NormalizedEvent], first_purchase: dict[str, dict[str, int]]) -> dict[str, dict[str, int]]:
    """首次大招时间与 BKB / 神杖 / 魔晶 的首次购买时间。"""
    out: dict[str, dict[str, int]] = {}
    for ac in casts:
        if not ac.is_ult or not ac.actor or ac.time < 0:
            continue
        sub = out.setdefault(ac.actor, {})
        if ac.time < sub.get("first_ult_cast_time", ac.time + 1):
            sub["first_ult_cast_time"] = ac.time
    for player, items in first_purchase.items():
        sub = out.setdefault(player, {})
        for item, key in SPIKE_ITEMS.items():
            if item in items:
                sub[key] = items[item]
    return out


def cc_efficiency(instances: Iterable[CCInterval], fights: Iterable[Fight], window: int = 2) -> dict[str, int]:
    """控制结束后 window 秒内目标阵亡视为“致死控制”。"""
    deaths: dict[str, list[int]] = defaultdict(list)
    for f in fights:
        for ev in f.events:
            if ev.kind is EventKind.DEATH and ev.target and ev.time >= 0:
                deaths[ev.target].append(ev.time)
    total = near_death = 0
    for inst in instances:
        if not inst.target or inst.end < 0:
            continue
        total += 1
        if any(dt - window <= inst.end <= dt for dt in deaths.get(inst.target, ())):
            near_death += 1
    return {"cc_total": total, "cc_near_death": near_death}


def lane_roles(
    casts: Iterable[NormalizedEvent],
    combat_events: Iterable[NormalizedEvent],
    wards: Iterable[WardRecord],
    smokes: Iterable[NormalizedEvent],
    identity: IdentityResolver,
    early_end: int = 420,
) -> dict[str, dict[str, Any]]:
    """前期（early_end 秒内）插眼+开雾 >= 2 次判为辅助，否则为核心。"""
    early_wards: dict[str, int] = defaultdict(int)
    early_smokes: dict[str, int] = defaultdict(int)
    for w in wards:
        if 0 <= w.time <= early_end:
            early_wards[w.player] += 1
    for s in smokes:
        if 0 <= s.time <= early_end:
            early_smokes[s.actor] += 1

    players: dict[str, None] = {}
    for ac in casts:
        if ac.actor:
            players.setdefault(ac.actor, None)
    for ev in combat_events:
        if ev.kind is EventKind.DAMAGE and ev.actor:
            players.setdefault(ev.actor, None)

    out: dict[str, dict[str, Any]] = {}
    for p in players:
        w, s = early_wards.get(p, 0), early_smokes.get(p, 0)
        support = (w + s) >= 2
        out[p] = {
            "role_guess": "support" if support else "core",
            "team": identity.team_of(p),
            "early_wards": w,
            "early_smokes": s,
            "confidence": 0.6 if support else 0.5,
        }
    return out
