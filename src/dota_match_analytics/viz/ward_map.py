"""眼位图：在小地图上绘制真假眼位置与眼位热点中心。"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from ..analyzers.wards import aggregate_wards
from ..config import get_output_dir, load_config
from ..data.models import TEAM_DIRE, TEAM_RADIANT, WardEntity
from ..parsers.replay import game_to_normalized
from .map_loader import load_map_image

# (类型, 阵营) -> (颜色, 图例, 标记)
_STYLES = {
    ("observer", TEAM_RADIANT): ("#7cb342", "Radiant Observer", "o"),
    ("observer", TEAM_DIRE): ("#e53935", "Dire Observer", "o"),
    ("sentry", TEAM_RADIANT): ("#66bb6a", "Radiant Sentry", "s"),
    ("sentry", TEAM_DIRE): ("#ef5350", "Dire Sentry", "s"),
}


def draw_ward_map(
    wards: Iterable[WardEntity],
    hotspots: list[dict[str, Any]] | None = None,
    output_path: str | Path | None = None,
    map_size: int = 1440,
    point_radius: float = 8.0,
    title: str = "Ward Map (Observer / Sentry)",
) -> Path:
    """
    绘制眼位图。wards 为世界坐标；hotspots 为分析文档中的 ward_hotspots，
    以空心圆标出热点中心，圆的大小随眼位数量增长。
    """
    if output_path is None:
        out_path = get_output_dir() / load_config()["output"].get("ward_map_file", "ward_map.png")
    else:
        out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    groups = aggregate_wards(wards)
    scale = map_size - 1

    fig, ax = plt.subplots(1, 1, figsize=(10, 10))
    ax.set_aspect("equal")
    ax.set_xlim(0, map_size)
    ax.set_ylim(0, map_size)

    bg = load_map_image(map_size)
    if bg is not None:
        # 图像 y 轴向下，地图坐标 y 轴向上
        ax.imshow(bg[::-1, :], origin="lower", extent=[0, map_size, 0, map_size], zorder=0)
    else:
        ax.add_patch(plt.Rectangle((0, 0), map_size, map_size, facecolor="#16213e", edgecolor="#0f3460"))

    for (ward_type, team), (color, label, marker) in _STYLES.items():
        pts = groups[ward_type][team]
        if not pts:
            continue
        xs = [p[0] * scale for p in pts]
        ys = [p[1] * scale for p in pts]
        ax.scatter(xs, ys, c=color, s=point_radius**2, marker=marker, label=label,
                   alpha=0.85, zorder=5, edgecolors="white", linewidths=0.5)

    for h in hotspots or []:
        nx, ny = game_to_normalized(float(h["x"]), float(h["y"]))
        ax.scatter([nx * scale], [ny * scale], s=(point_radius * 2 + 4 * int(h.get("count", 1))) ** 2,
                   facecolors="none", edgecolors="#ffd54f", linewidths=2, zorder=6)
        ax.annotate(str(h.get("count", "")), (nx * scale, ny * scale), color="#ffd54f",
                    ha="center", va="center", fontsize=8, zorder=7)

    if ax.get_legend_handles_labels()[0]:
        ax.legend(loc="upper left", fontsize=8)
    ax.set_title(title)
    ax.set_xticks([])
    ax.set_yticks([])
    plt.tight_layout()
    plt.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out_path
