"""录像事件源：读取外部解析器（clarity 等）导出的事件 JSON / JSON Lines，可为 .bz2 压缩。"""
from __future__ import annotations

import bz2
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Iterator

from ..data.models import CombatLogRecord, EntityRecord, GameEventRecord, RawRecord

logger = logging.getLogger(__name__)

# Dota 2 地图世界坐标范围（以地图中心为原点），用于归一化到 0-1
MAP_SIZE_X = 17664.0
MAP_SIZE_Y = 16643.0

DUMP_SUFFIXES = (".json", ".jsonl", ".json.bz2", ".jsonl.bz2")


class ReplaySourceError(RuntimeError):
    """无法读取事件源（文件缺失、无法解压、整体格式错误）。"""


def game_to_normalized(x: float, y: float) -> tuple[float, float]:
    """世界坐标 -> 归一化 [0,1]（左下角原点）。"""
    nx = max(0.0, min(1.0, x / MAP_SIZE_X + 0.5))
    ny = max(0.0, min(1.0, y / MAP_SIZE_Y + 0.5))
    return nx, ny


def record_from_dict(obj: Any) -> RawRecord | None:
    """
    把一条 JSON 对象转换为原始记录。支持的 type：
    entity_created / entity_updated / game_event / combat_log；其他返回 None。
    """
    if not isinstance(obj, dict):
        return None
    kind = obj.get("type")
    if kind in ("entity_created", "entity_updated"):
        return EntityRecord(
            created=kind == "entity_created",
            dt_class=str(obj.get("class") or obj.get("dt_class") or ""),
            properties=obj.get("properties") or {},
            index=obj.get("index"),
        )
    if kind == "game_event":
        return GameEventRecord(name=str(obj.get("name") or ""), properties=obj.get("properties") or {})
    if kind == "combat_log":
        return CombatLogRecord(
            timestamp=obj.get("timestamp", obj.get("time")),
            log_type=obj.get("log_type") or obj.get("combat_type") or "",
            attacker=obj.get("attacker"),
            target=obj.get("target"),
            inflictor=obj.get("inflictor"),
            value=obj.get("value", 0),
        )
    return None


def match_id_from_filename(path: str | Path) -> int | None:
    """文件名开头的数字作为 match_id，例如 7891234567.jsonl.bz2。"""
    m = re.match(r"^(\d+)", Path(path).name)
    return int(m.group(1)) if m else None


def load_ult_names(path: str | Path | None = None) -> set[str]:
    """
    读取大招名单（JSON 字符串数组）。未指定路径时依次尝试
    配置 analysis.ult_abilities_path 与环境变量 DOTA_ULTS_PATH；都没有则返回空集。
    """
    if not path:
        from ..config import load_config
        path = load_config()["analysis"].get("ult_abilities_path") or os.environ.get("DOTA_ULTS_PATH")
    if not path:
        return set()
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of ability names")
    return {str(x) for x in data if x}


class ReplayEventSource:
    """
    单个事件导出文件。格式自动识别：
    - JSON 数组 [{...}, ...] 或 {"events": [...]}
    - JSON Lines（每行一个对象）；坏行跳过
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @property
    def match_id(self) -> int | None:
        return match_id_from_filename(self.path)

    def _read_text(self) -> str:
        try:
            if self.path.suffix == ".bz2":
                with bz2.open(self.path, "rt", encoding="utf-8") as f:
                    return f.read()
            with open(self.path, encoding="utf-8") as f:
                return f.read()
        except (OSError, EOFError, UnicodeDecodeError) as e:
            raise ReplaySourceError(f"cannot read {self.path}: {e}") from e

    def _raw_objects(self) -> Iterator[Any]:
        text = self._read_text()
        head = text.lstrip()[:1]
        data: Any = None
        if head == "[":
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                raise ReplaySourceError(f"{self.path} is not valid JSON: {e}") from e
        elif head == "{":
            try:
                data = json.loads(text)
            except json.JSONDecodeError:
                data = None  # 多行 JSON Lines
        if data is not None:
            if isinstance(data, dict):
                data = data.get("events") if isinstance(data.get("events"), list) else [data]
            if not isinstance(data, list):
                raise ReplaySourceError(f"{self.path}: expected a list of events")
            yield from data
            return
        for lineno, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.debug("%s:%d: skipping malformed line", self.path, lineno)

    def __iter__(self) -> Iterator[RawRecord]:
        for obj in self._raw_objects():
            rec = record_from_dict(obj)
            if rec is not None:
                yield rec

    def records(self) -> list[RawRecord]:
        return list(self)


def iter_dump_files(replay_dir: str | Path | None = None) -> Iterator[Path]:
    """遍历 replay_dir 下所有事件导出文件。"""
    if replay_dir is None:
        from ..config import load_config
        replay_dir = load_config().get("replay_dir", "replays")
    root = Path(replay_dir)
    if not root.is_dir():
        return
    for p in sorted(root.rglob("*")):
        if p.is_file() and p.name.endswith(DUMP_SUFFIXES):
            yield p
