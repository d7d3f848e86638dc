"""Tests for unit ownership and team resolution."""

from dota_match_analytics.analyzers.identity import (
    IdentityResolver,
    hero_unit_from_class,
    is_hero,
    normalize_owner,
    team_from_name,
    team_label,
)


class TestNormalizeOwner:
    """Tests for resolving a unit name to its controlling hero."""

    def test_hero_is_its_own_owner(self):
        assert normalize_owner("npc_dota_hero_axe") == "npc_dota_hero_axe"

    def test_embedded_hero_name(self):
        """Illusions and similar units carry the hero name inside their own."""
        assert normalize_owner("illusion_npc_dota_hero_axe") == "npc_dota_hero_axe"

    def test_known_companions(self):
        assert normalize_owner("npc_dota_lone_druid_spirit_bear") == "npc_dota_hero_lone_druid"
        assert normalize_owner("npc_dota_arc_warden_tempest_double") == "npc_dota_hero_arc_warden"
        assert normalize_owner("npc_dota_visage_familiar1") == "npc_dota_hero_visage"

    def test_unknown_unit_is_unchanged(self):
        assert normalize_owner("npc_dota_creep_goodguys_melee") == "npc_dota_creep_goodguys_melee"

    def test_empty(self):
        assert normalize_owner("") == ""
        assert normalize_owner(None) == ""

    def test_case_is_folded(self):
        assert normalize_owner("NPC_DOTA_HERO_AXE") == "npc_dota_hero_axe"


class TestTeamLabels:
    """Tests for team number and name mapping."""

    def test_numbers(self):
        assert team_label(2) == "Radiant"
        assert team_label(3) == "Dire"
        assert team_label("3") == "Dire"
        assert team_label(5) == ""

    def test_names(self):
        assert team_label("goodguys") == "Radiant"
        assert team_label("Dire") == "Dire"

    def test_bool_and_none_are_unknown(self):
        assert team_label(True) == ""
        assert team_label(None) == ""

    def test_non_finite_numbers_are_unknown(self):
        assert team_label(float("inf")) == ""
        assert team_label(float("nan")) == ""
        assert team_label(3.0) == "Dire"

    def test_team_from_unit_name(self):
        assert team_from_name("npc_dota_goodguys_tower1_top") == "Radiant"
        assert team_from_name("npc_dota_badguys_range_rax_mid") == "Dire"
        assert team_from_name("npc_dota_roshan") == ""


class TestHeroClass:
    """Tests for hero entity class names."""

    def test_hero_unit_from_class(self):
        assert hero_unit_from_class("CDOTA_Unit_Hero_Axe") == "npc_dota_hero_axe"
        assert hero_unit_from_class("CDOTA_Unit_Hero_Shadow_Shaman") == "npc_dota_hero_shadow_shaman"

    def test_non_hero_class(self):
        assert hero_unit_from_class("CDOTA_NPC_Observer_Ward") == ""
        assert hero_unit_from_class(None) == ""

    def test_is_hero(self):
        assert is_hero("npc_dota_hero_lina")
        assert not is_hero("npc_dota_roshan")


class TestIdentityResolver:
    """Tests for the hero -> team table."""

    def test_registered_hero(self):
        ids = IdentityResolver()
        ids.register_hero("npc_dota_hero_axe", "Radiant")
        assert ids.team_of("npc_dota_hero_axe") == "Radiant"

    def test_companion_inherits_owner_team(self):
        ids = IdentityResolver()
        ids.register_hero("npc_dota_hero_lone_druid", "Dire")
        assert ids.team_of("npc_dota_lone_druid_spirit_bear") == "Dire"

    def test_falls_back_to_unit_name(self):
        ids = IdentityResolver()
        assert ids.team_of("npc_dota_badguys_tower2_mid") == "Dire"
        assert ids.team_of("npc_dota_hero_lina") == ""

    def test_empty_team_is_not_registered(self):
        ids = IdentityResolver()
        ids.register_hero("npc_dota_hero_axe", "")
        assert ids.hero_teams == {}
