"""Tests for fight segmentation and enrichment."""

import pytest

from dota_match_analytics.analyzers.fights import (
    FightSegmenter,
    enrich_fight,
    interaction_groups,
    segment_fights,
    team_swing,
)
from dota_match_analytics.data.models import EventKind, GoldXpDelta


class TestSegmentation:
    """Tests for gap-based fight segmentation."""

    def test_gap_splits_fights(self, ev):
        events = [
            ev(10, EventKind.DAMAGE, "A", "B", value=100),
            ev(12, EventKind.DEATH, "A", "B"),
            ev(40, EventKind.DAMAGE, "C", "D", value=50),
        ]
        fights = segment_fights(events, gap=20)
        assert len(fights) == 2
        assert (fights[0].start, fights[0].end) == (10, 12)
        assert fights[0].participants == ["A", "B"]
        assert fights[1].participants == ["C", "D"]

    def test_gap_equal_to_threshold_stays_in_fight(self, ev):
        fights = segment_fights([ev(0, actor="A", target="B"), ev(20, actor="A", target="B")], gap=20)
        assert len(fights) == 1
        assert fights[0].duration == 20

    def test_non_combat_events_ignored(self, ev):
        seg = FightSegmenter(gap=20)
        seg.feed(ev(5, EventKind.ABILITY_CAST, "A"))
        seg.feed(ev(6, EventKind.GOLD, "A"))
        assert seg.finish() == []

    def test_heal_extends_fight(self, ev):
        fights = segment_fights([
            ev(0, EventKind.DAMAGE, "A", "B"),
            ev(15, EventKind.HEAL, "C", "B"),
            ev(30, EventKind.DAMAGE, "A", "B"),
        ], gap=20)
        assert len(fights) == 1
        assert fights[0].participants == ["A", "B", "C"]

    def test_resegmenting_is_stable(self, ev):
        events = [ev(t, EventKind.DAMAGE, "A", "B", value=10) for t in (0, 5, 30, 31, 80)]
        first = [(f.start, f.end, f.participants) for f in segment_fights(events, gap=20)]
        second = [(f.start, f.end, f.participants) for f in segment_fights(events, gap=20)]
        assert first == second
        assert [(s, e) for s, e, _ in first] == [(0, 5), (30, 31), (80, 80)]


class TestTeamSwing:
    def test_radiant_minus_dire(self):
        deltas = [
            GoldXpDelta(10, "Radiant", gold=300, xp=100),
            GoldXpDelta(15, "Dire", gold=100, xp=250),
            GoldXpDelta(60, "Radiant", gold=999),
        ]
        assert team_swing(deltas, 0, 20) == (200, -150, True)

    def test_empty_window(self):
        assert team_swing([GoldXpDelta(100, "Radiant", gold=1)], 0, 20) == (0, 0, False)


class TestInteractionGroups:
    def test_disconnected_skirmishes(self, ev):
        fight = segment_fights([
            ev(0, actor="A", target="B"),
            ev(1, actor="C", target="D"),
            ev(2, actor="B", target="E"),
        ])[0]
        assert interaction_groups(fight) == [["A", "B", "E"], ["C", "D"]]


class TestEnrichFight:
    """Tests for phase-two fight enrichment."""

    @pytest.fixture
    def fight(self, ev):
        return segment_fights([
            ev(10, EventKind.DAMAGE, "A", "B", value=100),
            ev(12, EventKind.DEATH, "A", "B"),
        ])[0]

    def test_swing_from_gold_xp(self, fight):
        enrich_fight(fight, [GoldXpDelta(25, "Radiant", gold=400)], [], [])
        assert fight.swing == {"gold": 400, "xp": 0, "source": "combatlog_gold_xp"}
        assert fight.damage_proxy_by_actor is None

    def test_damage_proxy_without_gold_xp(self, fight):
        enrich_fight(fight, [], [], [])
        assert fight.swing["source"] == "damage_proxy"
        assert fight.damage_proxy_by_actor == {"A": 100}

    def test_ults_and_buybacks_in_activity_window(self, fight, ev):
        casts = [
            ev(13, EventKind.ABILITY_CAST, "A", is_ult=True),
            ev(15, EventKind.ABILITY_CAST, "A", is_ult=True),
            ev(11, EventKind.ABILITY_CAST, "B", is_ult=False),
        ]
        buybacks = [ev(14, EventKind.BUYBACK, "B"), ev(40, EventKind.BUYBACK, "B")]
        enrich_fight(fight, [], casts, buybacks, activity_tail=2)
        assert fight.ults_count == 1
        assert fight.ults_by_caster == {"A": 1}
        assert fight.buybacks_by_player == {"B": 1}

    def test_actor_impact(self, fight):
        enrich_fight(fight, [], [], [])
        a = fight.by_actor["A"]
        assert a["kills"] == 1
        assert a["assists"] == 1
        assert a["damage_share"] == 1.0
        assert a["kparticipation"] == 2.0
        assert a["impact_score"] == pytest.approx(1.75)
        assert fight.by_actor["B"]["impact_score"] == 0.0

    def test_spatial_groups(self, fight):
        enrich_fight(fight, [], [], [])
        assert fight.spatial_groups == [{"participants": ["A", "B"], "participants_count": 2}]

    def test_to_dict(self, fight):
        enrich_fight(fight, [], [], [])
        d = fight.to_dict()
        assert d["participants_count"] == 2
        assert d["duration"] == 2
        assert d["events"][0]["kind"] == "damage"
