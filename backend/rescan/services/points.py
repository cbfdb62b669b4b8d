"""
Points calculation for classified scans.

points = round_half_up(base[material] * ric_multiplier * max(confidence / 100, 0.3))

A recognized material always earns at least one point; unknown earns none.
"""

import math
from typing import Optional

from ..config import Config
from ..models import MaterialClassification, MaterialType

BASE_POINTS: dict[MaterialType, int] = {
    MaterialType.PLASTIC: 10,
    MaterialType.CARDBOARD: 8,
    MaterialType.PAPER: 6,
    MaterialType.GLASS: 12,
    MaterialType.METAL: 15,
    MaterialType.ALUMINUM: 18,
    MaterialType.UNKNOWN: 0,
}

# Easier-to-recycle resins earn more
RIC_MULTIPLIERS: dict[int, float] = {
    1: 1.2,  # PET
    2: 1.1,  # HDPE
    3: 0.8,  # PVC
    4: 0.9,  # LDPE
    5: 1.0,  # PP
    6: 0.7,  # PS
    7: 0.5,  # Other
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_points(material_type: MaterialType, ric_code: Optional[int], confidence: int) -> int:
    """
    Points for one scan.

    Args:
        material_type: Normalized material
        ric_code: Resin code 1-7, or None
        confidence: 0-100

    Returns:
        Non-negative integer points
    """
    base = BASE_POINTS.get(material_type, 0)
    if base == 0:
        return 0

    multiplier = RIC_MULTIPLIERS.get(ric_code, 1.0) if ric_code is not None else 1.0
    confidence_factor = max(confidence / 100, Config.MIN_CONFIDENCE_MULTIPLIER)

    points = round_half_up(base * multiplier * confidence_factor)
    return max(points, Config.MIN_POINTS_RECOGNIZED)


def points_for(classification: MaterialClassification) -> int:
    return calculate_points(
        classification.material_type,
        classification.ric_code,
        classification.confidence,
    )
