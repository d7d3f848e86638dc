"""分析文档导出为 JSON。"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..config import get_output_dir, load_config


def document_path(match_id: int | None) -> Path:
    """按配置 output.document_file 生成默认输出路径。"""
    pattern = load_config()["output"].get("document_file", "{match_id}_analysis.json")
    return get_output_dir() / pattern.format(match_id=match_id if match_id is not None else "match")


def export_document(document: dict[str, Any], output_path: str | Path | None = None) -> Path:
    """写出分析文档；写入失败的 OSError 直接抛出。"""
    out_path = Path(output_path) if output_path else document_path(document.get("match_id"))
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(document, f, ensure_ascii=False, indent=2)
    return out_path


def load_document(path: str | Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: not an analysis document")
    return data
