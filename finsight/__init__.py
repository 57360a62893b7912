"""
FinSight - Source Package

A local personal finance tracker with AI-assisted transaction entry,
budget tracking and spend forecasting.

DESIGN PRINCIPLES:
1. AI suggests → Human confirms → Store commits
2. Never trust the shape of AI output
3. Derived views are pure functions of stored state
4. Every accepted mutation is persisted immediately
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "FinSight Team"
