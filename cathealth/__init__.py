# cathealth/__init__.py
"""
CatHealth: AI symptom checks and personalized wellness plans for cats
"""

__version__ = "1.0.0"
