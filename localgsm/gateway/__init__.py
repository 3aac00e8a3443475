"""Gateway module for LocalGSM.

HTTP middleware shared by every emulated endpoint: request logging with
correlation IDs and mock bearer-token authentication.
"""

from localgsm.gateway.middleware import (
    MockAuthMiddleware,
    RequestLoggingMiddleware,
)

__all__ = [
    "MockAuthMiddleware",
    "RequestLoggingMiddleware",
]
