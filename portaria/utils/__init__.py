"""
Utility modules for common functionality
"""

from portaria.utils.field_formatter import FieldFormatter

__all__ = [
    "FieldFormatter",
]
