"""
Tradelog

Trading journal analysis engine: trade metrics, pattern detection,
personalized advice and gamified progress.
"""

__version__ = "0.1.0"
