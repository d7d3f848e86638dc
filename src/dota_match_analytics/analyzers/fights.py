"""团战切分与富化：时间间隔聚类、经济摆动、交互连通分量、个人影响力。"""
from __future__ import annotations

from collections import defaultdict, deque
from typing import Any, Iterable

from ..data.models import (
    COMBAT_KINDS,
    TEAM_DIRE,
    TEAM_RADIANT,
    EventKind,
    Fight,
    GoldXpDelta,
    NormalizedEvent,
)


def build_fight(buffer: list[NormalizedEvent]) -> Fight:
    """把一段缓冲的战斗事件封装为 Fight。participants 保持首次出现顺序。"""
    start = min(ev.time for ev in buffer)
    end = max(ev.time for ev in buffer)
    participants: dict[str, None] = {}
    for ev in buffer:
        if ev.actor:
            participants.setdefault(ev.actor, None)
        if ev.target:
            participants.setdefault(ev.target, None)
    return Fight(start=start, end=end, participants=list(participants), events=list(buffer))


class FightSegmenter:
    """按时间间隔切分团战：与上一条事件相差超过 gap 秒即结束当前团战。"""

    def __init__(self, gap: int = 20):
        self.gap = gap
        self.fights: list[Fight] = []
        self._buffer: list[NormalizedEvent] = []
        self._last_time: int | None = None

    def feed(self, ev: NormalizedEvent) -> None:
        if ev.kind not in COMBAT_KINDS:
            return
        if self._buffer and self._last_time is not None and ev.time - self._last_time > self.gap:
            self.flush()
        self._buffer.append(ev)
        self._last_time = ev.time

    def flush(self) -> None:
        if not self._buffer:
            return
        self.fights.append(build_fight(self._buffer))
        self._buffer = []

    def finish(self) -> list[Fight]:
        self.flush()
        return self.fights


def segment_fights(events: Iterable[NormalizedEvent], gap: int = 20) -> list[Fight]:
    seg = FightSegmenter(gap)
    for ev in events:
        seg.feed(ev)
    return seg.finish()


def team_swing(deltas: Iterable[GoldXpDelta], start: int, end: int) -> tuple[int, int, bool]:
    """[start, end] 内天辉减夜魇的金钱/经验；第三项表示窗口内是否有任何记录。"""
    r_gold = d_gold = r_xp = d_xp = 0
    seen = False
    for gx in deltas:
        if gx.time < start or gx.time > end:
            continue
        seen = True
        if gx.team == TEAM_RADIANT:
            r_gold += gx.gold
            r_xp += gx.xp
        elif gx.team == TEAM_DIRE:
            d_gold += gx.gold
            d_xp += gx.xp
    return r_gold - d_gold, r_xp - d_xp, seen


def interaction_groups(fight: Fight) -> list[list[str]]:
    """以 actor-target 为边建无向图，按 participants 顺序做 BFS 求连通分量。"""
    adj: dict[str, list[str]] = defaultdict(list)
    for ev in fight.events:
        a, b = ev.actor, ev.target
        if not a or not b:
            continue
        if b not in adj[a]:
            adj[a].append(b)
        if a not in adj[b]:
            adj[b].append(a)
    seen: set[str] = set()
    groups: list[list[str]] = []
    for node in fight.participants:
        if not node or node in seen:
            continue
        seen.add(node)
        comp = [node]
        dq = deque([node])
        while dq:
            u = dq.popleft()
            for v in adj.get(u, ()):
                if v not in seen:
                    seen.add(v)
                    dq.append(v)
                    comp.append(v)
        groups.append(comp)
    return groups


def actor_impact(
    fight: Fight,
    ults_by_caster: dict[str, int],
    buybacks_by_player: dict[str, int],
    assist_window: int = 10,
) -> dict[str, dict[str, Any]]:
    """
    每个参战单位的伤害、治疗、击杀、助攻及占比，和综合影响力：
    damage_share + 0.5*kills + 0.25*assists + 0.3*ults - 0.2*buybacks。
    助攻 = 死亡前 assist_window 秒内对死者造成过伤害的所有单位（可能包含击杀者）。
    """
    dmg: dict[str, int] = defaultdict(int)
    heal: dict[str, int] = defaultdict(int)
    kills: dict[str, int] = defaultdict(int)
    assists: dict[str, int] = defaultdict(int)
    total_damage = total_healing = total_kills = 0
    deaths: list[NormalizedEvent] = []

    for ev in fight.events:
        if ev.kind is EventKind.DAMAGE:
            dmg[ev.actor] += ev.value
            total_damage += ev.value
        elif ev.kind is EventKind.HEAL:
            heal[ev.actor] += ev.value
            total_healing += ev.value
        elif ev.kind is EventKind.DEATH:
            kills[ev.actor] += 1
            total_kills += 1
            deaths.append(ev)

    for death in deaths:
        victim = death.target
        if not victim or death.time < 0:
            continue
        for ev in fight.events:
            if ev.kind is not EventKind.DAMAGE or not ev.actor or ev.target != victim:
                continue
            if death.time - assist_window <= ev.time <= death.time:
                assists[ev.actor] += 1

    by_actor: dict[str, dict[str, Any]] = {}
    for actor in fight.participants:
        if not actor:
            continue
        d, h, k, a = dmg.get(actor, 0), heal.get(actor, 0), kills.get(actor, 0), assists.get(actor, 0)
        damage_share = d / total_damage if total_damage > 0 else 0.0
        ults = ults_by_caster.get(actor, 0)
        bbs = buybacks_by_player.get(actor, 0)
        by_actor[actor] = {
            "damage": d,
            "healing": h,
            "kills": k,
            "assists": a,
            "damage_share": damage_share,
            "healing_share": h / total_healing if total_healing > 0 else 0.0,
            "kparticipation": (k + a) / total_kills if total_kills > 0 else 0.0,
            "impact_score": damage_share + k * 0.5 + a * 0.25 + ults * 0.3 - bbs * 0.2,
        }
    return by_actor


def enrich_fight(
    fight: Fight,
    gold_xp: list[GoldXpDelta],
    ability_casts: list[NormalizedEvent],
    buybacks: list[NormalizedEvent],
    swing_tail: int = 20,
    activity_tail: int = 2,
    assist_window: int = 10,
) -> Fight:
    """第二阶段富化单场团战（原地写入富化字段）。"""
    s, e = fight.start, max(fight.end, fight.start)

    gold, xp, any_gold_xp = team_swing(gold_xp, s, e + swing_tail)
    fight.swing = {
        "gold": gold,
        "xp": xp,
        "source": "combatlog_gold_xp" if any_gold_xp else "damage_proxy",
    }
    if not any_gold_xp:
        proxy: dict[str, int] = defaultdict(int)
        for ev in fight.events:
            if ev.kind is EventKind.DAMAGE and ev.actor and ev.value > 0:
                proxy[ev.actor] += ev.value
        fight.damage_proxy_by_actor = dict(proxy)

    fight.spatial_groups = [
        {"participants": comp, "participants_count": len(comp)}
        for comp in interaction_groups(fight)
    ]

    activity_end = e + activity_tail
    ults: dict[str, int] = defaultdict(int)
    ult_count = 0
    for ac in ability_casts:
        if not ac.is_ult or ac.time < s or ac.time > activity_end:
            continue
        ult_count += 1
        if ac.actor:
            ults[ac.actor] += 1
    bbs: dict[str, int] = defaultdict(int)
    bb_count = 0
    for bb in buybacks:
        if bb.time < s or bb.time > activity_end:
            continue
        bb_count += 1
        if bb.actor:
            bbs[bb.actor] += 1
    fight.ults_count = ult_count
    fight.ults_by_caster = dict(ults)
    fight.buybacks_count = bb_count
    fight.buybacks_by_player = dict(bbs)

    fight.by_actor = actor_impact(fight, fight.ults_by_caster, fight.buybacks_by_player, assist_window)
    return fight
