"""
Audit Logging Middleware

Logs every state-changing API request with HTTP method, path and status.
"""

import logging
from fastapi import Request
from datetime import datetime

# Create dedicated audit logger
logger = logging.getLogger("audit")

MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


async def audit_log_middleware(request: Request, call_next):
    """
    Audit logging middleware

    Logs state-changing requests (entries and exits) with:
    - Client address
    - HTTP method
    - Request path
    - Response status code
    - Timestamp
    """
    response = await call_next(request)

    if request.method in MUTATING_METHODS:
        client = request.client.host if request.client else "unknown"

        logger.info(
            f"API Request | "
            f"Client: {client} | "
            f"Method: {request.method} | "
            f"Path: {request.url.path} | "
            f"Status: {response.status_code} | "
            f"Time: {datetime.now().isoformat()}"
        )

    return response
