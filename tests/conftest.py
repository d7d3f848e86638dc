"""Shared fixtures: isolated config/working directory and record builders."""

import pytest

from dota_match_analytics.config import reset_config
from dota_match_analytics.data.models import (
    CombatLogRecord,
    EntityRecord,
    EventKind,
    GameEventRecord,
    NormalizedEvent,
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Each test runs in its own directory with default config and no ult list env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DOTA_ULTS_PATH", raising=False)
    monkeypatch.delenv("DOTA_ANALYTICS_CONFIG", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def combat():
    """Build a combat log record: combat(t, log_type, attacker, target, inflictor, value)."""
    def _build(t, log_type, attacker="", target="", inflictor="", value=0):
        return CombatLogRecord(timestamp=t, log_type=log_type, attacker=attacker,
                               target=target, inflictor=inflictor, value=value)
    return _build


@pytest.fixture
def game_event():
    def _build(name, **props):
        return GameEventRecord(name=name, properties=props)
    return _build


@pytest.fixture
def hero_entity():
    """Hero entity record; team 2 = Radiant, 3 = Dire."""
    def _build(hero_class, team, created=True, origin=None, index=None):
        props = {"m_iTeamNum": team}
        if origin is not None:
            props["m_vecOrigin"] = list(origin)
        return EntityRecord(created=created, dt_class=hero_class, properties=props, index=index)
    return _build


@pytest.fixture
def ev():
    """Build a NormalizedEvent directly: ev(t, kind, actor, target, ...)."""
    def _build(t, kind=EventKind.DAMAGE, actor="", target="", **kw):
        return NormalizedEvent(time=t, kind=kind, actor=actor, target=target, **kw)
    return _build
