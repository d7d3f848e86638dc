"""第一阶段的增量状态机：控制区间、眼位生命周期、英雄位置采样。"""
from __future__ import annotations

import logging
from collections import defaultdict

from ..data.models import CCInterval, PositionSample, WardRecord, WardType

logger = logging.getLogger(__name__)

CC_CATEGORIES = ("stun", "root", "silence", "hex")


def cc_category(modifier: str) -> str | None:
    """按子串识别控制类别；非控制 modifier 返回 None。"""
    mod = (modifier or "").lower()
    for cat in CC_CATEGORIES:
        if cat in mod:
            return cat
    return None


class CCTracker:
    """
    控制区间追踪。key = (目标, modifier 名)；同 key 的第二次 add 覆盖开始时间，
    只有配对的 remove 才会产出区间，未闭合的区间直接丢弃。
    """

    def __init__(self) -> None:
        self._open: dict[tuple[str, str], tuple[int, str]] = {}
        self.instances: list[CCInterval] = []
        self.by_target: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self.by_attacker: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))

    @property
    def open_count(self) -> int:
        return len(self._open)

    def on_add(self, time: int, target: str, modifier: str, source: str) -> None:
        mod = (modifier or "").lower()
        if cc_category(mod) is None:
            return
        self._open[(target, mod)] = (time, source)

    def on_remove(self, time: int, target: str, modifier: str) -> CCInterval | None:
        mod = (modifier or "").lower()
        category = cc_category(mod)
        if category is None:
            return None
        opened = self._open.pop((target, mod), None)
        if opened is None:
            return None
        start, source = opened
        # 乱序时 end 取 start，保证 end >= start
        end = max(time, start)
        interval = CCInterval(
            target=target,
            modifier=mod,
            category=category,
            source=source,
            start=start,
            end=end,
            duration=end - start,
        )
        self.instances.append(interval)
        self.by_target[target][category] += interval.duration
        if source:
            self.by_attacker[source][category] += interval.duration
        return interval


class WardLifecycleTracker:
    """
    眼位生命周期。眼死亡时按“最近插下且未结算”逆序匹配（LIFO），
    不是按时间最近匹配；同时在 lookback 内找最近的假眼作为排眼来源。
    """

    def __init__(
        self,
        deward_lookback: int = 60,
        observer_expected_lifetime: int = 420,
        sentry_expected_lifetime: int = 90,
    ):
        self.deward_lookback = deward_lookback
        self.expected = {
            "observer": observer_expected_lifetime,
            "sentry": sentry_expected_lifetime,
        }
        self.observers: list[WardRecord] = []
        self.sentries: list[WardRecord] = []

    @property
    def records(self) -> list[WardRecord]:
        return sorted(self.observers + self.sentries, key=lambda w: w.time)

    def place(self, time: int, player: str, owner: str, team: str, ward_type: WardType) -> WardRecord:
        record = WardRecord(time=time, player=player, owner=owner, team=team, type=ward_type)
        (self.sentries if ward_type == "sentry" else self.observers).append(record)
        return record

    def nearest_sentry(self, died_at: int, exclude: WardRecord | None = None) -> WardRecord | None:
        best: WardRecord | None = None
        best_dt: int | None = None
        for s in self.sentries:
            if s is exclude or s.time < 0 or s.time > died_at:
                continue
            dt = died_at - s.time
            if dt <= self.deward_lookback and (best_dt is None or dt < best_dt):
                best, best_dt = s, dt
        return best

    def on_ward_death(self, time: int, target: str, attacker: str) -> WardRecord | None:
        """target 含 sentry 时在假眼池中匹配，否则在真眼池中匹配。"""
        pool = self.sentries if "sentry" in (target or "").lower() else self.observers
        for w in reversed(pool):
            if w.resolved:
                continue
            if 0 <= w.time <= time:
                self._resolve(w, time, attacker)
                return w
        logger.debug("ward death at %s (%s) matched no open placement", time, target)
        return None

    def _resolve(self, w: WardRecord, time: int, attacker: str) -> None:
        src = self.nearest_sentry(time, exclude=w)
        expected = self.expected[w.type]
        lifetime = time - w.time
        w.removed_at = time
        w.removed_by = attacker
        w.lifetime = lifetime
        w.expected_lifetime = expected
        w.effective_ratio = min(1.0, lifetime / expected) if expected > 0 else 0.0
        if src is not None:
            w.deward_source_time = src.time
            w.deward_source_player = src.player


class PositionSampler:
    """英雄位置采样：每个英雄每 step 秒最多一个样本，只追加。"""

    def __init__(self, step: int = 2):
        self.step = step
        self.samples: dict[str, list[PositionSample]] = {}
        self._last: dict[str, int] = {}

    def register(self, hero: str) -> None:
        self.samples.setdefault(hero, [])

    def observe(self, hero: str, time: int, x: float, y: float) -> bool:
        last = self._last.get(hero)
        if last is not None and time - last < self.step:
            return False
        self.samples.setdefault(hero, []).append(PositionSample(time, float(x), float(y)))
        self._last[hero] = time
        return True

    def position_at(self, hero: str, time: int) -> PositionSample | None:
        """返回 time 及之前最近的一个样本。"""
        for s in reversed(self.samples.get(hero, ())):
            if s.time <= time:
                return s
        return None
