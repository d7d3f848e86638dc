"""Tests for ward hotspot clustering."""

import pytest

from dota_match_analytics.analyzers.hotspots import cluster_points, ward_hotspots
from dota_match_analytics.data.models import WardEntity


class TestClusterPoints:
    def test_empty(self):
        assert cluster_points([], 1200, 3) == []

    def test_too_few_points(self):
        assert cluster_points([(0, 0), (100, 0)], 1200, 3) == []

    def test_border_points_join_through_core(self):
        pts = [(0, 0), (1000, 0), (2000, 0), (3000, 0)]
        clusters = cluster_points(pts, 1200, 3)
        assert len(clusters) == 1
        assert sorted(clusters[0]) == [0, 1, 2, 3]

    def test_noise_excluded(self):
        pts = [(0, 0), (100, 0), (0, 100), (9000, 9000)]
        clusters = cluster_points(pts, 1200, 3)
        assert [sorted(c) for c in clusters] == [[0, 1, 2]]


class TestWardHotspots:
    def test_centroid_and_counts(self):
        wards = [
            WardEntity(0, 0, "Radiant", "observer"),
            WardEntity(300, 0, "Radiant", "sentry"),
            WardEntity(0, 300, "Dire", "observer"),
            WardEntity(-8000, 7000, "Dire", "observer"),
        ]
        hotspots = ward_hotspots(wards, eps=1200, min_pts=3)
        assert len(hotspots) == 1
        h = hotspots[0]
        assert h.count == 3
        assert h.x == pytest.approx(100.0)
        assert h.y == pytest.approx(100.0)
        assert h.by_type == {"observer": 2, "sentry": 1}
        assert h.by_team == {"Radiant": 2, "Dire": 1}
        assert h.to_dict()["minpts"] == 3

    def test_no_wards(self):
        assert ward_hotspots([]) == []
