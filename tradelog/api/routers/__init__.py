"""
Tradelog API Routers Package

Router Structure:
-----------------
- system.py        : /api/health - Health check
- journal.py       : /api/journal/* - Metrics, patterns, advice, full analysis
- gamification.py  : /api/gamification/* - Levels, daily progress, achievements
- base.py          : Shared response model, helpers and dependencies
"""

__all__ = ["gamification", "journal", "system"]
