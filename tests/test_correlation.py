"""Tests for cross-stream correlation: objectives, vision, Roshan and economy leads."""

import pytest

from dota_match_analytics.analyzers.correlation import (
    assign_ward_positions,
    attach_objective_swings,
    chain_objectives,
    classify_building,
    count_lead_switches,
    economy_lead_series,
    lead_switch_events,
    nearest_fight,
    pickoff_sequences,
    roshan_context,
    roshan_control,
    score_ward,
    vision_impact,
    vision_rollup,
)
from dota_match_analytics.analyzers.fights import segment_fights
from dota_match_analytics.analyzers.identity import IdentityResolver
from dota_match_analytics.analyzers.trackers import PositionSampler
from dota_match_analytics.data.models import (
    EventKind,
    GoldXpDelta,
    ObjectiveEvent,
    WardEntity,
    WardRecord,
)

AXE = "npc_dota_hero_axe"
LINA = "npc_dota_hero_lina"


@pytest.fixture
def identity():
    ids = IdentityResolver()
    ids.register_hero(AXE, "Radiant")
    ids.register_hero(LINA, "Dire")
    return ids


class TestClassifyBuilding:
    def test_kinds(self):
        assert classify_building("npc_dota_goodguys_tower1_top") == "tower"
        assert classify_building("npc_dota_badguys_melee_rax_mid") == "barracks"
        assert classify_building("npc_dota_watch_tower_outpost") == "outpost"
        assert classify_building("npc_dota_goodguys_fort") == "ancient"
        assert classify_building("npc_dota_goodguys_fillers") == "other"


class TestObjectiveChains:
    """Tests for objective ordering and chaining."""

    def test_chain_ids(self):
        objs = [ObjectiveEvent(t, EventKind.BUILDING_KILL) for t in (130, 100, 200, 110)]
        ordered = chain_objectives(objs, gap=15)
        assert [o.time for o in ordered] == [100, 110, 130, 200]
        assert [o.seq for o in ordered] == [1, 2, 3, 4]
        assert [o.chain_id for o in ordered] == [1, 1, 2, 3]

    def test_objective_swing(self):
        obj = ObjectiveEvent(100, EventKind.BUILDING_KILL)
        attach_objective_swings([obj], [GoldXpDelta(150, "Dire", gold=500), GoldXpDelta(200, "Dire", gold=1)], 90)
        assert obj.swing == {"gold": -500, "xp": 0}

    def test_unknown_time_has_no_swing(self):
        obj = ObjectiveEvent(-1, EventKind.GLYPH)
        attach_objective_swings([obj], [GoldXpDelta(0, "Radiant", gold=5)])
        assert obj.swing == {}


class TestPickoffs:
    """Tests for hero death -> building kill correlation."""

    def test_pickoff_to_tower(self, ev):
        fights = segment_fights([ev(100, EventKind.DEATH, AXE, LINA), ev(118, EventKind.DAMAGE, AXE, "tower")])
        objs = chain_objectives([
            ObjectiveEvent(100, EventKind.HERO_DEATH, target=LINA),
            ObjectiveEvent(130, EventKind.BUILDING_KILL, target="npc_dota_badguys_tower1_mid",
                           team_target="Dire", swing={"gold": 300, "xp": 20}),
        ])
        counts, details = pickoff_sequences(objs, fights, window=45)
        assert counts == {"pickoff_to_tower": 1, "pickoff_to_outpost": 0,
                          "pickoff_to_barracks": 0, "pickoff_to_ancient": 0}
        assert details[0]["delta"] == 30
        assert details[0]["objective_kind"] == "tower"
        assert details[0]["swing_gold"] == 300
        assert details[0]["participants"] == [AXE, LINA, "tower"]

    def test_death_outside_window(self):
        objs = chain_objectives([
            ObjectiveEvent(50, EventKind.HERO_DEATH, target=LINA),
            ObjectiveEvent(130, EventKind.BUILDING_KILL, target="npc_dota_badguys_tower1_mid"),
        ])
        counts, details = pickoff_sequences(objs, [], window=45)
        assert sum(counts.values()) == 0
        assert details == []

    def test_nearest_fight_prefers_window(self, ev):
        fights = segment_fights([ev(0, actor="A", target="B"), ev(100, actor="C", target="D")], gap=20)
        assert nearest_fight(fights, 108).participants == ["C", "D"]
        assert nearest_fight(fights, 40).participants == ["A", "B"]
        assert nearest_fight([], 40) is None


class TestWardPositions:
    def test_assign_by_team_and_type_in_order(self):
        wards = [
            WardRecord(200, "P2", "P2", "Radiant", "observer"),
            WardRecord(100, "P1", "P1", "Radiant", "observer"),
            WardRecord(150, "P3", "P3", "Dire", "sentry"),
            WardRecord(160, "P4", "P4", "", "observer"),
        ]
        entities = [
            WardEntity(1.0, 1.0, "Radiant", "observer"),
            WardEntity(5.0, 5.0, "Dire", "sentry"),
            WardEntity(2.0, 2.0, "Radiant", "observer"),
        ]
        assign_ward_positions(wards, entities)
        assert (wards[1].x, wards[1].y) == (1.0, 1.0)
        assert (wards[0].x, wards[0].y) == (2.0, 2.0)
        assert wards[2].x == 5.0
        assert not wards[3].has_position


class TestVisionImpact:
    """Tests for observer ward vision scoring."""

    @pytest.fixture
    def sampler(self):
        ps = PositionSampler()
        ps.observe(AXE, 110, 100.0, 0.0)
        ps.observe(LINA, 110, 0.0, 500.0)
        return ps

    @pytest.fixture
    def fights(self, ev):
        fights = segment_fights([
            ev(115, EventKind.DAMAGE, AXE, LINA, value=300),
            ev(120, EventKind.DEATH, AXE, LINA),
        ])
        fights[0].swing = {"gold": 300, "xp": 0, "source": "combatlog_gold_xp"}
        return fights

    def test_located_ward(self, identity, sampler, fights):
        ward = WardRecord(100, AXE, AXE, "Radiant", "observer", x=0.0, y=0.0)
        rec = score_ward(ward, fights, identity, sampler, window=60, radius=1600)
        assert rec.fights_in_window == 1
        assert rec.favorable_fights_window == 1
        assert rec.kills_for_team_window == 1
        assert rec.kills_against_team_window == 0
        assert rec.tracked_enemy_heroes_estimate == 1
        assert rec.movement_events_estimate == 1
        assert rec.efficiency_score == pytest.approx(2.5)
        assert rec.type == "item_ward_observer"

    def test_far_ward_sees_nothing(self, identity, sampler, fights):
        ward = WardRecord(100, AXE, AXE, "Radiant", "observer", x=6000.0, y=6000.0)
        rec = score_ward(ward, fights, identity, sampler)
        assert rec.fights_in_window == 0
        assert rec.tracked_enemy_heroes_estimate == 0
        assert rec.efficiency_score == 0.0

    def test_unlocated_ward_uses_time_only(self, identity, fights):
        ward = WardRecord(100, LINA, LINA, "Dire", "observer")
        rec = score_ward(ward, fights, identity, PositionSampler())
        assert rec.fights_in_window == 1
        assert rec.favorable_fights_window == 0
        assert rec.kills_against_team_window == 1
        assert rec.tracked_enemy_heroes_estimate == 1
        assert "ward_x" not in rec.to_dict()

    def test_only_observers_scored(self, identity, fights):
        wards = [
            WardRecord(100, AXE, AXE, "Radiant", "sentry"),
            WardRecord(-1, AXE, AXE, "Radiant", "observer"),
            WardRecord(100, AXE, AXE, "Radiant", "observer"),
        ]
        assert len(vision_impact(wards, fights, identity, PositionSampler())) == 1

    def test_rollup_average(self, identity, fights):
        wards = [
            WardRecord(100, AXE, AXE, "Radiant", "observer"),
            WardRecord(500, AXE, AXE, "Radiant", "observer"),
        ]
        records = vision_impact(wards, fights, identity, PositionSampler())
        by_player = vision_rollup(records, "player")
        node = by_player[AXE]
        assert node["_count"] == 2
        assert node["fights_in_window"] == 1
        assert node["efficiency_score_avg"] == pytest.approx(node["efficiency_score_sum"] / 2)
        assert set(vision_rollup(records, "team")) == {"Radiant"}


class TestRoshan:
    """Tests for Roshan window correlation."""

    def test_no_kill_means_no_context(self):
        assert roshan_context(-1, [], [], []) == {}
        assert roshan_control(-1, [], [], IdentityResolver()) == {}

    def test_context_counts(self, ev):
        wards = [WardRecord(570, "A", "A", "Radiant", "observer"), WardRecord(700, "A", "A", "Radiant", "observer")]
        smokes = [ev(590, EventKind.ITEM_USE, "B")]
        runes = [ev(400, EventKind.RUNE, "C")]
        assert roshan_context(600, wards, smokes, runes, 60) == {"wards": 1, "smokes": 1, "runes": 0, "window": 60}

    def test_control(self, identity, ev):
        wards = [
            WardRecord(580, AXE, AXE, "Radiant", "observer"),
            WardRecord(590, LINA, LINA, "Dire", "sentry"),
            WardRecord(595, LINA, LINA, "", "sentry"),
        ]
        fights = segment_fights([ev(610, EventKind.DAMAGE, AXE, LINA), ev(612, EventKind.DAMAGE, AXE, "npc_dota_roshan")])
        ctrl = roshan_control(600, wards, fights, identity, 60)
        assert ctrl["wards_by_team"] == {"Radiant": 1}
        assert ctrl["sentries_by_team"] == {"Dire": 1}
        assert ctrl["heroes_presence_by_team"] == {"Radiant": 1, "Dire": 1}


class TestEconomyLead:
    """Tests for lead series and lead switches."""

    def test_series_buckets_and_cumulates(self):
        deltas = [
            GoldXpDelta(10, "Radiant", gold=100),
            GoldXpDelta(70, "Dire", gold=300, xp=50),
            GoldXpDelta(130, "Radiant", gold=50),
            GoldXpDelta(-1, "Radiant", gold=10000),
            GoldXpDelta(20, "", gold=10000),
        ]
        assert economy_lead_series(deltas, 60) == [
            {"time": 0, "lead_gold": 100, "lead_xp": 0},
            {"time": 60, "lead_gold": -200, "lead_xp": -50},
            {"time": 120, "lead_gold": -150, "lead_xp": -50},
        ]

    def test_count_switches(self):
        assert count_lead_switches([5, 3, -2, -1, 4]) == 2
        assert count_lead_switches([1, 0, -1]) == 1
        assert count_lead_switches([0, 0]) == 0
        assert count_lead_switches([]) == 0

    def test_switch_events(self):
        series = [
            {"time": 0, "lead_gold": 100, "lead_xp": -10},
            {"time": 60, "lead_gold": -200, "lead_xp": -50},
            {"time": 120, "lead_gold": 50, "lead_xp": 20},
        ]
        out = lead_switch_events(series)
        assert out["gold"] == 2
        assert out["xp"] == 1
        assert out["switches"] == [
            {"time": 60, "metric": "gold", "leader": "Dire"},
            {"time": 120, "metric": "gold", "leader": "Radiant"},
            {"time": 120, "metric": "xp", "leader": "Radiant"},
        ]
