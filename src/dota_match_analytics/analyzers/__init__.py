"""分析器：单位归属、区间追踪、团战、眼位热点、跨流关联、汇总表。"""
from .correlation import count_lead_switches, economy_lead_series
from .fights import FightSegmenter, enrich_fight, segment_fights
from .hotspots import ward_hotspots
from .identity import IdentityResolver, normalize_owner
from .trackers import CCTracker, PositionSampler, WardLifecycleTracker

__all__ = [
    "count_lead_switches",
    "economy_lead_series",
    "FightSegmenter",
    "enrich_fight",
    "segment_fights",
    "ward_hotspots",
    "IdentityResolver",
    "normalize_owner",
    "CCTracker",
    "PositionSampler",
    "WardLifecycleTracker",
]
