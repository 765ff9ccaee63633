"""
Access control errors

Every error is local and recoverable by correcting the input. The message
is user-facing (pt-BR) and no state is mutated when one is raised.
"""


class AccessControlError(Exception):
    """Base class for visitor access control errors"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AccessControlError):
    """Missing required field, malformed CPF or blank search term"""

    status_code = 400


class ConflictError(AccessControlError):
    """Visitor already has an active visit"""

    status_code = 409


class NotFoundError(AccessControlError):
    """Unknown visit or visitor id, or nothing to export"""

    status_code = 404
