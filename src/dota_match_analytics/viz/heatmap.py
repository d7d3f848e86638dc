"""英雄热力图：由位置采样生成地图上的停留频率热力图。"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from scipy.ndimage import gaussian_filter

from ..config import get_output_dir, load_config
from ..parsers.replay import game_to_normalized
from .map_loader import load_map_image


def draw_heatmap(
    positions: Sequence[tuple[float, float]],
    output_path: str | Path | None = None,
    map_size: int = 1440,
    sigma: float = 12.0,
    title: str = "Hero Heatmap",
) -> Path:
    """positions 为世界坐标 (x, y)；无数据时输出一张空图。"""
    out_path = Path(output_path) if output_path else get_output_dir() / "heatmap.png"
    out_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(1, 1, figsize=(10, 10))
    ax.set_aspect("equal")
    ax.set_xlim(0, map_size)
    ax.set_ylim(0, map_size)

    bg = load_map_image(map_size)
    if bg is not None:
        ax.imshow(bg[::-1, :], origin="lower", extent=[0, map_size, 0, map_size], alpha=0.85, zorder=0)
    else:
        ax.set_facecolor("#1a1a2e")

    if positions:
        normalized = np.array([game_to_normalized(x, y) for x, y in positions]) * (map_size - 1)
        # 二维直方图 + 高斯平滑，对数压缩
        hist, _, _ = np.histogram2d(normalized[:, 1], normalized[:, 0], bins=map_size,
                                    range=[[0, map_size], [0, map_size]])
        hist = np.log10(gaussian_filter(hist, sigma=sigma) + 1)
        im = ax.imshow(hist, origin="lower", extent=[0, map_size, 0, map_size], cmap="hot",
                       alpha=0.55, interpolation="bilinear", zorder=1)
        plt.colorbar(im, ax=ax, label="log10(count+1)")

    ax.set_title(title)
    ax.set_xticks([])
    ax.set_yticks([])
    plt.tight_layout()
    plt.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out_path


def draw_heatmaps_by_hero(
    position_samples: dict[str, list[Any]],
    output_dir: str | Path | None = None,
    map_size: int = 1440,
    sigma: float = 12.0,
) -> list[Path]:
    """
    为每个英雄生成一张热力图。position_samples 取自分析文档，
    每个采样为 [time, x, y]。
    """
    out_dir = Path(output_dir) if output_dir else get_output_dir()
    pattern = load_config()["output"].get("heatmap_file", "heatmap_{hero}.png")
    paths = []
    for hero, samples in sorted(position_samples.items()):
        positions = [(float(s[1]), float(s[2])) for s in samples if len(s) >= 3]
        short = hero.removeprefix("npc_dota_hero_")
        paths.append(draw_heatmap(positions, out_dir / pattern.format(hero=short),
                                  map_size=map_size, sigma=sigma, title=f"Heatmap {short}"))
    return paths
