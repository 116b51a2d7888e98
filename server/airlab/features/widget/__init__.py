"""
Конструктор встраиваемого чат-виджета.
"""

from .generator import render_widget
from .schemas import WidgetConfig

__all__ = [
    "render_widget",
    "WidgetConfig"
]
