"""Level formula tests: level = floor(sqrt(xp / 100)) + 1."""

import pytest

from appdedupe.gamification.levels import compute_level, level_progress, xp_for_level


class TestComputeLevel:
    @pytest.mark.parametrize(
        ("xp", "level"),
        [(0, 1), (99, 1), (100, 2), (399, 2), (400, 3), (900, 4), (10_000, 11), (10_099, 11)],
    )
    def test_boundaries(self, xp, level):
        assert compute_level(xp) == level

    def test_negative_xp_is_level_one(self):
        assert compute_level(-50) == 1

    def test_large_xp_is_exact(self):
        """isqrt avoids float rounding at perfect squares."""
        assert compute_level(100 * 10**12) == 10**6 + 1
        assert compute_level(100 * 10**12 - 1) == 10**6


class TestLevelProgress:
    def test_thresholds(self):
        assert xp_for_level(1) == 0
        assert xp_for_level(2) == 100
        assert xp_for_level(3) == 400

    def test_progress_mid_level(self):
        progress = level_progress(250)
        assert progress == {"level": 2, "xp_into_level": 150, "xp_for_level": 300, "next_level_xp": 400}

    def test_progress_at_boundary(self):
        assert level_progress(400)["xp_into_level"] == 0
