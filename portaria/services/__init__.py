"""
Services for the visit lifecycle and reporting
"""

from portaria.services.access_control import AccessControlService
from portaria.services.report_service import ReportService

__all__ = [
    "AccessControlService",
    "ReportService",
]
