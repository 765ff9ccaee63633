"""
API module for the gatehouse front-end

Provides REST endpoints over the visitor access control service
"""

from portaria.api.server import create_app

__all__ = [
    "create_app",
]
