"""Tests for ward/heatmap rendering and document export (no map download)."""

import json

import pytest

from dota_match_analytics.analyzers.wards import aggregate_wards, ward_points_from_document
from dota_match_analytics.data.models import WardEntity
from dota_match_analytics.viz import export
from dota_match_analytics.viz import heatmap as heatmap_mod
from dota_match_analytics.viz import ward_map as ward_map_mod
from dota_match_analytics.viz.map_loader import get_map_path, load_map_image


@pytest.fixture(autouse=True)
def no_background(monkeypatch):
    monkeypatch.setattr(ward_map_mod, "load_map_image", lambda size: None)
    monkeypatch.setattr(heatmap_mod, "load_map_image", lambda size: None)


class TestWardAggregation:
    def test_groups_by_type_and_team(self):
        groups = aggregate_wards([
            WardEntity(0, 0, "Radiant", "observer"),
            WardEntity(0, 0, "Dire", "sentry"),
            WardEntity(0, 0, "", "observer"),
        ])
        assert groups["observer"]["Radiant"] == [(0.5, 0.5)]
        assert groups["sentry"]["Dire"] == [(0.5, 0.5)]
        assert groups["observer"]["Dire"] == []
        assert groups["total_count"] == 3

    def test_points_prefer_entities(self):
        doc = {"enriched": {
            "ward_entities": [{"x": 1, "y": 2, "team": "Radiant", "type": "observer"}],
            "wards_events": [{"x": 9, "y": 9, "team": "Dire", "type": "sentry"}],
        }}
        assert ward_points_from_document(doc) == [WardEntity(1.0, 2.0, "Radiant", "observer")]

    def test_points_fall_back_to_located_wards(self):
        doc = {"enriched": {"ward_entities": [], "wards_events": [
            {"x": 9, "y": 9, "team": "Dire", "type": "sentry"},
            {"team": "Dire", "type": "observer"},
        ]}}
        assert ward_points_from_document(doc) == [WardEntity(9.0, 9.0, "Dire", "sentry")]


class TestRendering:
    """Rendering writes PNG files without a base map."""

    def test_ward_map(self, tmp_path):
        wards = [WardEntity(0, 0, "Radiant", "observer"), WardEntity(500, -300, "Dire", "sentry")]
        hotspots = [{"x": 100.0, "y": 100.0, "count": 3}]
        out = ward_map_mod.draw_ward_map(wards, hotspots, tmp_path / "wards.png", map_size=256)
        assert out.is_file()
        assert out.read_bytes()[:4] == b"\x89PNG"

    def test_ward_map_default_path(self):
        out = ward_map_mod.draw_ward_map([], map_size=128)
        assert out.name == "ward_map.png"
        assert out.is_file()

    def test_heatmap_empty_and_filled(self, tmp_path):
        empty = heatmap_mod.draw_heatmap([], tmp_path / "empty.png", map_size=128)
        filled = heatmap_mod.draw_heatmap([(0, 0), (100, 100), (100, 120)], tmp_path / "h.png",
                                          map_size=128, sigma=2)
        assert empty.is_file()
        assert filled.is_file()

    def test_heatmaps_by_hero(self, tmp_path):
        samples = {"npc_dota_hero_axe": [[0, 0.0, 0.0], [2, 10.0, 10.0]], "npc_dota_hero_lina": []}
        paths = heatmap_mod.draw_heatmaps_by_hero(samples, tmp_path, map_size=128, sigma=2)
        assert [p.name for p in paths] == ["heatmap_axe.png", "heatmap_lina.png"]
        assert all(p.is_file() for p in paths)


class TestExport:
    def test_export_and_load(self, tmp_path):
        doc = {"match_id": 5, "enriched": {"ward_entities": []}, "meta": {"notes": "时间单位为秒"}}
        out = export.export_document(doc, tmp_path / "sub" / "doc.json")
        assert json.loads(out.read_text(encoding="utf-8")) == doc
        assert export.load_document(out) == doc

    def test_default_document_path(self):
        out = export.export_document({"match_id": 77})
        assert out.name == "77_analysis.json"
        assert out.parent.name == "output"

    def test_load_rejects_non_documents(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError):
            export.load_document(path)


class TestMapLoader:
    def test_local_asset_is_loaded(self, tmp_path):
        from PIL import Image

        (tmp_path / "assets").mkdir()
        Image.new("RGB", (32, 32), (10, 20, 30)).save(tmp_path / "assets" / "dota_minimap.png")
        assert get_map_path().name == "dota_minimap.png"
        arr = load_map_image(16, download_if_missing=False)
        assert arr.shape == (16, 16, 3)
