"""可视化与导出：眼位图、英雄热力图、分析文档 JSON。"""
from .export import export_document, load_document
from .heatmap import draw_heatmap, draw_heatmaps_by_hero
from .ward_map import draw_ward_map

__all__ = ["export_document", "load_document", "draw_heatmap", "draw_heatmaps_by_hero", "draw_ward_map"]
