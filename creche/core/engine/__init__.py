"""
Creche Core Engine Package.

Pure calculation engines over fetched rows.

Modules:
    nutrition: Nutrient aggregation for menus (ingredient, meal, day, week)
    forecast: Monthly revenue/cost projection
"""

from creche.core.engine import nutrition, forecast

__all__ = ["nutrition", "forecast"]
