"""小地图底图：优先读取本地 assets/，缺失时可下载。"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
import requests
from PIL import Image

logger = logging.getLogger(__name__)

MAP_URLS = {
    1080: "https://raw.githubusercontent.com/KaiSforza/dotaMinimapCovers/master/dota700_minimap_1080_large.png",
    1440: "https://raw.githubusercontent.com/KaiSforza/dotaMinimapCovers/master/dota700_minimap_1440_large.png",
}
MAP_FILE = "dota_minimap.png"
_LOCAL_NAMES = (MAP_FILE, "dota_map.png", "minimap.png", "map.png")


def _project_roots() -> list[Path]:
    # 当前目录；src/dota_match_analytics/viz -> 项目根
    return [Path.cwd(), Path(__file__).resolve().parents[3]]


def get_map_path() -> Path | None:
    """第一个存在的 assets/ 地图文件；没有返回 None。"""
    for root in _project_roots():
        for name in _LOCAL_NAMES:
            p = root / "assets" / name
            if p.is_file():
                return p
    return None


def ensure_map_downloaded(force: bool = False, resolution: int = 1440) -> Path | None:
    """
    确保 assets/dota_minimap.png 存在；force=True 时重新下载。
    成功返回文件路径，失败返回 None。
    """
    url = MAP_URLS.get(resolution, MAP_URLS[1440])
    for root in _project_roots():
        dest = root / "assets" / MAP_FILE
        if dest.is_file() and not force:
            return dest
        try:
            r = requests.get(url, timeout=60)
            r.raise_for_status()
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(r.content)
            return dest
        except (requests.RequestException, OSError) as e:
            logger.warning("map download into %s failed: %s", dest.parent, e)
    return None


def load_map_image(size: int = 1024, download_if_missing: bool = True) -> Any:
    """读取底图并缩放为 size x size，返回 (H, W, 3) 数组；不可用时返回 None。"""
    path = get_map_path()
    if path is None and download_if_missing:
        path = ensure_map_downloaded()
    if path is None:
        return None
    try:
        with Image.open(path) as img:
            rgb = img.convert("RGB")
            return np.array(rgb.resize((size, size), Image.Resampling.LANCZOS))
    except OSError as e:
        logger.warning("cannot load map image %s: %s", path, e)
        return None
