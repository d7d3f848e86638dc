"""解析器：事件导出文件读取与事件归一化。"""
from .normalizer import EventNormalizationError, EventNormalizer, parse_time
from .replay import ReplayEventSource, ReplaySourceError, load_ult_names

__all__ = [
    "EventNormalizationError",
    "EventNormalizer",
    "parse_time",
    "ReplayEventSource",
    "ReplaySourceError",
    "load_ult_names",
]
