"""
Tests for points calculation.
"""

import pytest

from rescan.models import MaterialClassification, MaterialType
from rescan.services.points import BASE_POINTS, RIC_MULTIPLIERS, calculate_points, points_for, round_half_up


class TestCalculatePoints:
    """Test the points formula."""

    def test_pet_bottle_high_confidence(self):
        """10 * 1.2 * 0.85 = 10.2 -> 10."""
        assert calculate_points(MaterialType.PLASTIC, 1, 85) == 10

    def test_full_confidence_uses_base(self):
        for material, base in BASE_POINTS.items():
            assert calculate_points(material, None, 100) == base

    def test_ric_multiplier_applied(self):
        assert calculate_points(MaterialType.PLASTIC, 1, 100) == 12
        assert calculate_points(MaterialType.PLASTIC, 2, 100) == 11
        assert calculate_points(MaterialType.PLASTIC, 7, 100) == 5

    def test_confidence_floor(self):
        """Confidence below 30 is treated as 30."""
        assert calculate_points(MaterialType.ALUMINUM, None, 0) == calculate_points(MaterialType.ALUMINUM, None, 30)
        assert calculate_points(MaterialType.ALUMINUM, None, 10) == round_half_up(18 * 0.3)

    def test_rounds_half_up(self):
        """6 * 0.75 = 4.5 rounds to 5, not banker's 4."""
        assert calculate_points(MaterialType.PAPER, None, 75) == 5

    def test_recognized_material_earns_at_least_one(self):
        # 6 * 0.5 * 0.3 = 0.9 -> 1
        assert calculate_points(MaterialType.PAPER, 7, 0) == 1
        # 10 * 0.7 * 0.3 = 2.1 -> 2
        assert calculate_points(MaterialType.PLASTIC, 6, 0) == 2

    def test_unknown_earns_nothing(self):
        assert calculate_points(MaterialType.UNKNOWN, None, 100) == 0
        assert calculate_points(MaterialType.UNKNOWN, 1, 100) == 0

    @pytest.mark.parametrize("material", list(MaterialType))
    @pytest.mark.parametrize("confidence", [0, 19, 20, 50, 99, 100])
    def test_non_negative_and_deterministic(self, material, confidence):
        first = calculate_points(material, 1, confidence)
        assert first >= 0
        assert first == calculate_points(material, 1, confidence)

    def test_multiplier_table_covers_all_codes(self):
        assert sorted(RIC_MULTIPLIERS) == [1, 2, 3, 4, 5, 6, 7]


class TestPointsFor:
    """Test the classification convenience wrapper."""

    def test_uses_classification_fields(self):
        classification = MaterialClassification(
            material_type=MaterialType.GLASS,
            ric_code=None,
            confidence=90,
            recyclable=True,
            uncertain=False,
        )
        # 12 * 0.9 = 10.8 -> 11
        assert points_for(classification) == 11
