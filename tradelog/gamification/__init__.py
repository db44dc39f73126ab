"""
Gamification Module

Points-based level progression, daily goal scoring and achievements.
"""

from .achievements import (
    DailyProgress,
    calculate_daily_points,
    calculate_daily_progress,
    check_achievement_conditions,
)
from .levels import LevelInfo, calculate_level

__all__ = [
    "LevelInfo",
    "calculate_level",
    "DailyProgress",
    "calculate_daily_points",
    "calculate_daily_progress",
    "check_achievement_conditions",
]
