"""眼位热点：对眼位实体坐标做简化 DBSCAN 聚类。"""
from __future__ import annotations

from collections import Counter, deque
from typing import Sequence

import numpy as np

from ..data.models import WardEntity, WardHotspot


def _distance_matrix(points: np.ndarray) -> np.ndarray:
    diff = points[:, None, :] - points[None, :, :]
    return np.hypot(diff[..., 0], diff[..., 1])


def cluster_points(points: Sequence[tuple[float, float]], eps: float, min_pts: int) -> list[list[int]]:
    """
    返回每个簇的点下标列表（按 BFS 访问顺序）。
    邻域不含自身，邻域大小 + 1 >= min_pts 的点可扩展簇；噪声点不出现在结果里。
    """
    n = len(points)
    if n == 0:
        return []
    dist = _distance_matrix(np.asarray(points, dtype=float).reshape(n, 2))
    within = dist <= eps
    np.fill_diagonal(within, False)
    neighbours = [np.flatnonzero(within[i]).tolist() for i in range(n)]

    used = [False] * n
    clusters: list[list[int]] = []
    for i in range(n):
        if used[i] or len(neighbours[i]) + 1 < min_pts:
            continue
        cluster: list[int] = []
        dq = deque([i])
        used[i] = True
        while dq:
            u = dq.popleft()
            cluster.append(u)
            if len(neighbours[u]) + 1 >= min_pts:
                for v in neighbours[u]:
                    if not used[v]:
                        used[v] = True
                        dq.append(v)
        clusters.append(cluster)
    return clusters


def ward_hotspots(wards: Sequence[WardEntity], eps: float = 1200.0, min_pts: int = 3) -> list[WardHotspot]:
    """眼位实体聚类并汇总为热点：质心、数量、按类型/阵营计数。"""
    clusters = cluster_points([(w.x, w.y) for w in wards], eps, min_pts)
    hotspots: list[WardHotspot] = []
    for members in clusters:
        pts = [wards[i] for i in members]
        n = len(pts)
        hotspots.append(
            WardHotspot(
                x=sum(w.x for w in pts) / n,
                y=sum(w.y for w in pts) / n,
                count=n,
                by_type=dict(Counter(w.type for w in pts)),
                by_team=dict(Counter(w.team for w in pts)),
                eps=eps,
                minpts=min_pts,
            )
        )
    return hotspots
