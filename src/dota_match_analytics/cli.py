#!/usr/bin/env python3
"""命令行入口：分析录像事件导出、绘制眼位图与英雄热力图。"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .analyzers.engine import MatchAnalyzer
from .analyzers.state import AnalysisSettings
from .analyzers.wards import ward_points_from_document
from .api import OpenDotaClient
from .parsers import ReplayEventSource, ReplaySourceError, load_ult_names
from .parsers.replay import iter_dump_files
from .viz import draw_heatmaps_by_hero, draw_ward_map, export_document, load_document
from .viz.map_loader import ensure_map_downloaded


def _analyze_file(path: Path, settings: AnalysisSettings, ult_names: set[str],
                  out: str | Path | None, with_meta: bool) -> int:
    source = ReplayEventSource(path)
    analyzer = MatchAnalyzer(settings, ult_names)
    try:
        analyzer.ingest(source)
    except ReplaySourceError as e:
        print(f"读取失败: {e}")
        return 1
    document = analyzer.finish(source.match_id)

    if with_meta:
        if source.match_id is None:
            print("文件名中没有 match_id，跳过比赛元数据。")
        else:
            meta = OpenDotaClient().fetch_match_meta(source.match_id)
            if meta is None:
                print("获取比赛元数据失败，已跳过。")
            else:
                document["match_meta"] = meta

    try:
        out_path = export_document(document, out)
    except OSError as e:
        print(f"写入失败: {e}")
        return 1
    stats = document["meta"]
    print(f"分析文档已写入: {out_path}")
    print(f"  记录: {stats['records_seen']}（跳过 {stats['records_skipped']}）")
    print(f"  团战: {len(document['enriched']['fights_simple'])}  眼位: {len(document['enriched']['wards_events'])}")
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    """读取事件导出并生成分析文档；--in 为目录或省略时处理 replay_dir 下全部文件。"""
    try:
        ult_names = load_ult_names(args.ults)
    except (OSError, ValueError) as e:
        print(f"无法读取大招名单: {e}")
        return 1
    try:
        settings = AnalysisSettings.from_config()
    except ValueError as e:
        print(f"配置错误: {e}")
        return 1

    target = Path(args.input) if args.input else None
    if target is not None and not target.is_dir():
        return _analyze_file(target, settings, ult_names, args.out, args.match_meta)

    files = list(iter_dump_files(target))
    if not files:
        print("没有找到事件导出文件（.json / .jsonl，可 .bz2）。")
        return 1
    failed = 0
    for path in files:
        # 批量模式下 --out 视为输出目录
        out = Path(args.out) / f"{path.name.split('.')[0]}_analysis.json" if args.out else None
        failed += _analyze_file(path, settings, ult_names, out, args.match_meta)
    print(f"完成 {len(files) - failed}/{len(files)} 个文件")
    return 1 if failed else 0


def cmd_ward_map(args: argparse.Namespace) -> int:
    """由分析文档绘制眼位图。"""
    try:
        document = load_document(args.document)
    except (OSError, ValueError) as e:
        print(f"无法读取分析文档: {e}")
        return 1
    wards = ward_points_from_document(document)
    if not wards:
        print("文档中没有带坐标的眼位。")
        return 1
    hotspots = document.get("enriched", {}).get("aggregated_stats", {}).get("ward_hotspots", [])
    out_path = draw_ward_map(wards, hotspots, args.output)
    print(f"眼位图已生成: {out_path}（共 {len(wards)} 个眼位，{len(hotspots)} 个热点）")
    return 0


def cmd_heatmap(args: argparse.Namespace) -> int:
    """由分析文档的位置采样为每个英雄绘制热力图。"""
    try:
        document = load_document(args.document)
    except (OSError, ValueError) as e:
        print(f"无法读取分析文档: {e}")
        return 1
    samples = document.get("enriched", {}).get("position_samples") or {}
    if args.hero:
        samples = {k: v for k, v in samples.items() if k.endswith(args.hero)}
    if not samples:
        print("文档中没有位置采样。")
        return 1
    paths = draw_heatmaps_by_hero(samples, args.output_dir)
    print(f"热力图已生成: {len(paths)} 个文件")
    return 0


def cmd_download_map(args: argparse.Namespace) -> int:
    """下载小地图底图到 assets/dota_minimap.png。"""
    path = ensure_map_downloaded(force=args.force, resolution=args.resolution)
    if path:
        print(f"地图已保存: {path.resolve()}")
        return 0
    print("下载失败（请检查网络）。也可手动将地图 PNG 放入项目 assets/ 目录，命名为 dota_minimap.png。")
    return 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Dota 2 录像分析：团战、眼位、目标链、经济领先")
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("-v", "--verbose", action="count", default=0, help="输出日志（-vv 为调试级别）")
    sub = parser.add_subparsers(dest="command", help="子命令")

    p_analyze = sub.add_parser("analyze", help="分析事件导出文件并输出 JSON 文档")
    p_analyze.add_argument("--in", dest="input", default=None, help="事件导出文件或目录（默认 replay_dir）")
    p_analyze.add_argument("--out", default=None, help="输出 JSON 路径（目录模式下为输出目录）")
    p_analyze.add_argument("--ults", default=None, help="大招名单 JSON 数组文件")
    p_analyze.add_argument("--match-meta", action="store_true", help="从 OpenDota 补充比赛元数据")
    p_analyze.set_defaults(run=cmd_analyze)

    p_wards = sub.add_parser("ward-map", help="由分析文档绘制眼位图")
    p_wards.add_argument("--document", required=True, help="analyze 输出的 JSON")
    p_wards.add_argument("-o", "--output", default=None, help="输出图片路径")
    p_wards.set_defaults(run=cmd_ward_map)

    p_heat = sub.add_parser("heatmap", help="由分析文档绘制英雄热力图")
    p_heat.add_argument("--document", required=True, help="analyze 输出的 JSON")
    p_heat.add_argument("--hero", default=None, help="只绘制该英雄（如 axe）")
    p_heat.add_argument("-o", "--output-dir", default=None, help="输出目录")
    p_heat.set_defaults(run=cmd_heatmap)

    p_map = sub.add_parser("download-map", help="下载 Dota 2 地图底图到 assets/")
    p_map.add_argument("--force", action="store_true", help="强制重新下载")
    p_map.add_argument("--resolution", type=int, default=1440, choices=[1080, 1440], help="分辨率 1440 更清晰")
    p_map.set_defaults(run=cmd_download_map)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG if args.verbose > 1 else logging.INFO,
                            format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if not args.command:
        parser.print_help()
        return 0
    return args.run(args)


if __name__ == "__main__":
    sys.exit(main())
