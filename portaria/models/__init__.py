"""
Data models for visitors and visits
"""

from portaria.models.visitor import Visitor, EntryRequest
from portaria.models.visit import Visit, VisitReport, STATUS_ACTIVE, STATUS_COMPLETED

__all__ = [
    "Visitor",
    "EntryRequest",
    "Visit",
    "VisitReport",
    "STATUS_ACTIVE",
    "STATUS_COMPLETED",
]
