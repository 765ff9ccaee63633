"""
Portaria - visitor access control

Registers visitor entries and exits, searches visit history and exports
period reports, all persisted to a single local store.
"""

__version__ = "1.0.0"
