"""外部数据源：OpenDota。"""
from .opendota import OpenDotaClient, match_meta

__all__ = ["OpenDotaClient", "match_meta"]
