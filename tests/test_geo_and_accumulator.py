"""
Tests pour les calculs géographiques et le RouteAccumulator.
"""
import pytest

from mototrack.domain.entities.coordinate import Coordinate
from mototrack.domain.services.geo import distance_between, haversine_distance
from mototrack.domain.services.route_accumulator import RouteAccumulator


SF_A = Coordinate(37.7749, -122.4194, 0, accuracy=5.0)
SF_B = Coordinate(37.7750, -122.4195, 1000, accuracy=5.0)


# ============================================================
# Haversine
# ============================================================

class TestHaversine:
    @pytest.mark.parametrize("a, b", [
        ((37.7749, -122.4194), (37.7750, -122.4195)),
        ((48.8566, 2.3522), (45.7640, 4.8357)),
        ((-33.8688, 151.2093), (51.5074, -0.1278)),
        ((0.0, 179.9), (0.0, -179.9)),
    ])
    def test_symmetric(self, a, b):
        assert haversine_distance(*a, *b) == pytest.approx(haversine_distance(*b, *a))

    def test_same_point_is_zero(self):
        assert haversine_distance(45.0, 6.0, 45.0, 6.0) == 0.0

    def test_short_segment(self):
        # 0.0001° de latitude et de longitude à San Francisco
        assert distance_between(SF_A, SF_B) == pytest.approx(14.17, rel=0.01)

    def test_paris_lyon(self):
        # ~392 km à vol d'oiseau
        assert haversine_distance(48.8566, 2.3522, 45.7640, 4.8357) == pytest.approx(392_000, rel=0.01)


# ============================================================
# RouteAccumulator
# ============================================================

def _track(n: int, step_s: int = 2):
    return [
        Coordinate(45.0 + i * 0.0003, 6.0 + i * 0.0002, i * step_s * 1000, altitude=1000.0 + (i % 3) * 5)
        for i in range(n)
    ]


class TestRouteAccumulator:
    def test_empty(self):
        acc = RouteAccumulator()
        assert len(acc) == 0
        assert acc.last is None
        assert acc.distance == 0.0
        assert acc.duration == 0
        assert acc.avg_speed == 0.0
        assert acc.elevation_gain is None

    def test_distance_is_sum_of_segments(self):
        coords = _track(25)
        acc = RouteAccumulator()
        for coord in coords:
            acc.append(coord)

        expected = sum(distance_between(coords[i - 1], coords[i]) for i in range(1, len(coords)))
        assert len(acc) == 25
        assert acc.distance == pytest.approx(expected, rel=1e-12)

    def test_append_returns_segment_distance(self):
        acc = RouteAccumulator()
        assert acc.append(SF_A) == 0.0
        assert acc.append(SF_B) == pytest.approx(distance_between(SF_A, SF_B))

    def test_duration_from_timestamps(self):
        acc = RouteAccumulator()
        acc.append(Coordinate(45.0, 6.0, 1_000))
        acc.append(Coordinate(45.001, 6.0, 62_900))
        # 61.9 s tronquées
        assert acc.duration == 61

    def test_avg_speed_single_point_divides_by_one(self):
        acc = RouteAccumulator()
        acc.append(SF_A)
        acc.append(Coordinate(37.7750, -122.4195, 400))
        # durée tronquée à 0 -> division par 1
        assert acc.duration == 0
        assert acc.avg_speed == pytest.approx(acc.distance)

    def test_avg_speed_is_distance_over_duration(self):
        acc = RouteAccumulator()
        for coord in _track(11, step_s=5):
            acc.append(coord)
        assert acc.duration == 50
        assert acc.avg_speed == pytest.approx(acc.distance / 50)

    def test_speeds(self):
        acc = RouteAccumulator()
        acc.append(Coordinate(45.0, 6.0, 0, speed=10.0))
        acc.append(Coordinate(45.001, 6.0, 1000, speed=25.0))
        acc.append(Coordinate(45.002, 6.0, 2000, speed=None))
        acc.append(Coordinate(45.003, 6.0, 3000, speed=15.0))
        assert acc.max_speed == 25.0
        assert acc.current_speed == 15.0

    def test_current_speed_kept_when_fix_has_none(self):
        acc = RouteAccumulator()
        acc.append(Coordinate(45.0, 6.0, 0, speed=8.0))
        acc.append(Coordinate(45.001, 6.0, 1000))
        assert acc.current_speed == 8.0

    def test_elevation_gain_skips_unknown_altitudes(self):
        acc = RouteAccumulator()
        for i, altitude in enumerate([100.0, None, 110.0, 105.0, None, 120.0]):
            acc.append(Coordinate(45.0 + i * 0.001, 6.0, i * 1000, altitude=altitude))
        # +10 puis +15
        assert acc.elevation_gain == pytest.approx(25.0)

    def test_elevation_gain_needs_two_altitudes(self):
        acc = RouteAccumulator()
        acc.append(Coordinate(45.0, 6.0, 0, altitude=100.0))
        acc.append(Coordinate(45.001, 6.0, 1000))
        assert acc.elevation_gain is None

    def test_coordinates_returns_copy(self):
        acc = RouteAccumulator()
        acc.append(SF_A)
        acc.coordinates.append(SF_B)
        assert len(acc) == 1


class TestDisplayDuration:
    def test_ticker_reconciled_with_timestamps(self):
        acc = RouteAccumulator()
        for coord in _track(6, step_s=10):
            acc.append(coord)
        for _ in range(47):
            acc.tick()

        drift = acc.reconcile_display_duration()
        assert drift == -3
        assert acc.display_duration == acc.duration == 50

    def test_ticker_in_step(self):
        acc = RouteAccumulator()
        acc.append(Coordinate(45.0, 6.0, 0))
        acc.append(Coordinate(45.001, 6.0, 3000))
        for _ in range(3):
            acc.tick()
        assert acc.reconcile_display_duration() == 0
        assert acc.display_duration == 3
