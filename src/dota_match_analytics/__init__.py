"""Dota 2 录像分析：团战切分、控制时长、眼位生命周期与视野价值、目标链、经济领先。"""

__version__ = "0.2.0"
