"""OpenDota API 客户端：对局详情与英雄表，用于给分析文档补充比赛元数据。"""
from __future__ import annotations

import logging
import time
from typing import Any

import requests

from ..analyzers.identity import team_label
from ..config import load_config
from ..data.models import TEAM_DIRE, TEAM_RADIANT

logger = logging.getLogger(__name__)


class OpenDotaClient:
    """OpenDota API 封装（带简单限速）。"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        rate_limit_delay: float | None = None,
    ):
        od = load_config().get("opendota", {})
        self.base_url = (base_url or od.get("base_url", "https://api.opendota.com/api")).rstrip("/")
        self.api_key = api_key if api_key is not None else od.get("api_key", "")
        self.delay = rate_limit_delay if rate_limit_delay is not None else od.get("rate_limit_delay", 1.0)
        self._last_request_time = 0.0

    def _request(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any] | list[Any]:
        url = f"{self.base_url}{path}"
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        wait = self.delay - (time.monotonic() - self._last_request_time)
        if wait > 0:
            time.sleep(wait)
        self._last_request_time = time.monotonic()
        logger.debug("GET %s", url)
        r = requests.get(url, params=params or {}, headers=headers, timeout=30)
        r.raise_for_status()
        return r.json()

    def get_match(self, match_id: int) -> dict[str, Any]:
        """单场对局详情（players、radiant_win、duration 等）。"""
        data = self._request(f"/matches/{match_id}")
        return data if isinstance(data, dict) else {}

    def get_heroes(self) -> list[dict[str, Any]]:
        """英雄表（id、name=npc_dota_hero_*、localized_name）。"""
        data = self._request("/heroes")
        return data if isinstance(data, list) else []

    def fetch_match_meta(self, match_id: int) -> dict[str, Any] | None:
        """
        拉取并整理比赛元数据；网络或 HTTP 错误只记录日志并返回 None，
        不影响录像分析本身。
        """
        try:
            match = self.get_match(match_id)
            heroes = self.get_heroes()
        except (requests.RequestException, ValueError) as e:
            logger.warning("OpenDota request for match %s failed: %s", match_id, e)
            return None
        return match_meta(match, heroes)


def match_meta(match: dict[str, Any], heroes: list[dict[str, Any]]) -> dict[str, Any]:
    """
    以英雄单位名（npc_dota_hero_*）为键，标注中文/本地化名、player_slot、
    account_id、personaname 与阵营；附带 radiant_win、duration。
    """
    hero_by_id = {h.get("id"): h for h in heroes if isinstance(h, dict)}
    players: dict[str, dict[str, Any]] = {}
    for p in match.get("players") or []:
        if not isinstance(p, dict):
            continue
        hero = hero_by_id.get(p.get("hero_id"))
        if not hero or not hero.get("name"):
            continue
        slot = p.get("player_slot")
        if p.get("isRadiant") is not None:
            team = TEAM_RADIANT if p["isRadiant"] else TEAM_DIRE
        elif isinstance(slot, int):
            team = TEAM_RADIANT if slot < 128 else TEAM_DIRE
        else:
            team = team_label(p.get("team_number"))
        players[hero["name"]] = {
            "localized_name": hero.get("localized_name", ""),
            "player_slot": slot,
            "account_id": p.get("account_id"),
            "personaname": p.get("personaname") or "",
            "team": team,
        }
    return {
        "match_id": match.get("match_id"),
        "radiant_win": match.get("radiant_win"),
        "duration": match.get("duration"),
        "players": players,
    }
