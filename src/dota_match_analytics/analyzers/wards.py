"""眼位聚合：把眼位坐标归一化并按阵营/类型分组，供眼位图使用。"""
from __future__ import annotations

from typing import Any, Iterable

from ..data.models import TEAM_DIRE, TEAM_RADIANT, WardEntity
from ..parsers.replay import game_to_normalized


def ward_points_from_document(document: dict[str, Any]) -> list[WardEntity]:
    """
    从分析文档取眼位坐标：优先眼位实体，没有时退回已匹配到坐标的插眼记录。
    """
    enriched = document.get("enriched") or {}
    points: list[WardEntity] = []
    for w in enriched.get("ward_entities") or []:
        if isinstance(w, dict) and w.get("x") is not None and w.get("y") is not None:
            points.append(WardEntity(x=float(w["x"]), y=float(w["y"]),
                                     team=w.get("team", ""), type=w.get("type", "observer")))
    if points:
        return points
    for w in enriched.get("wards_events") or []:
        if isinstance(w, dict) and w.get("x") is not None and w.get("y") is not None:
            points.append(WardEntity(x=float(w["x"]), y=float(w["y"]),
                                     team=w.get("team", ""), type=w.get("type", "observer")))
    return points


def aggregate_wards(wards: Iterable[WardEntity]) -> dict[str, Any]:
    """将眼位归一化到 [0,1] 并按 observer/sentry、Radiant/Dire 分组；阵营未知的不计入分组。"""
    groups: dict[str, dict[str, list[tuple[float, float]]]] = {
        "observer": {TEAM_RADIANT: [], TEAM_DIRE: []},
        "sentry": {TEAM_RADIANT: [], TEAM_DIRE: []},
    }
    total = 0
    for w in wards:
        total += 1
        by_team = groups.get(w.type)
        if by_team is None or w.team not in by_team:
            continue
        by_team[w.team].append(game_to_normalized(w.x, w.y))
    return {**groups, "total_count": total}
