"""
Level Progression

Maps cumulative points to a level on a geometric curve: level 1 needs
100 points and every further level needs 10% more than the one before
(rounded down).
"""

import math
import numbers
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Dict

from tradelog.core.errors import ValidationError

BASE_LEVEL_POINTS = 100
LEVEL_GROWTH = 1.1


@dataclass(frozen=True)
class LevelInfo:
    """Level and progress derived from cumulative points."""

    current_level: int
    current_points: float
    points_for_current_level: int
    points_for_next_level: int
    progress_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentLevel": self.current_level,
            "currentPoints": self.current_points,
            "pointsForCurrentLevel": self.points_for_current_level,
            "pointsForNextLevel": self.points_for_next_level,
            "progressPercentage": round(self.progress_percentage, 2),
        }


def calculate_level(
    points: float,
    base_points: int = BASE_LEVEL_POINTS,
    growth: float = LEVEL_GROWTH,
) -> LevelInfo:
    """
    Calculate level and progress for a point total.

    Args:
        points: Cumulative points, must be non-negative
        base_points: Points required to leave level 1
        growth: Multiplier applied to each subsequent requirement

    Returns:
        LevelInfo for the point total

    Raises:
        ValidationError: If points is negative or not a finite number
    """
    if (
        points is None
        or isinstance(points, bool)
        or not isinstance(points, numbers.Real)
        or (not isinstance(points, numbers.Integral) and not math.isfinite(points))
        or points < 0
    ):
        raise ValidationError(detail=f"points must be a non-negative number, got {points!r}")

    # Exact ratio, so large integer totals never pass through float
    ratio = Fraction(str(growth))
    level = 1
    points_required = max(1, int(base_points))
    total_for_level = 0

    while points >= total_for_level + points_required:
        total_for_level += points_required
        level += 1
        points_required = max(1, points_required * ratio.numerator // ratio.denominator)

    progress = (points - total_for_level) / points_required * 100

    return LevelInfo(
        current_level=level,
        current_points=points,
        points_for_current_level=total_for_level,
        points_for_next_level=total_for_level + points_required,
        progress_percentage=progress,
    )
