"""Error taxonomy shared by the upload flow, the hosting client and the record store"""

from enum import Enum
from typing import Optional
import uuid


class ErrorCode(str, Enum):
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    NOTHING_STAGED = "NOTHING_STAGED"
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    EMPTY_SITE_NAME = "EMPTY_SITE_NAME"
    EMPTY_SLUG = "EMPTY_SLUG"
    DEPLOY_REJECTED = "DEPLOY_REJECTED"
    DUPLICATE_SLUG = "DUPLICATE_SLUG"
    HOSTING_UNAVAILABLE = "HOSTING_UNAVAILABLE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    ACCESS_DENIED = "ACCESS_DENIED"


class ApplicationError(Exception):
    """Base error. Subclasses mark how the router should recover."""

    def __init__(self, code: ErrorCode, message: str, hint: Optional[str] = None):
        self.error_id = str(uuid.uuid4())
        self.code = code
        self.message = message
        self.hint = hint
        super().__init__(self.message)

    def model_dump(self):
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "message": self.message,
            "hint": self.hint,
        }


class ValidationError(ApplicationError):
    """Bad user input (empty name, empty staging, oversized file). Session stays usable."""


class TransportError(ApplicationError):
    """Network or timeout failure talking to the hosting API or the record store"""


class BusinessError(ApplicationError):
    """The hosting API (or the store) refused the request, e.g. duplicate site name"""


class AuthorizationError(ApplicationError):
    """Non-admin user tried an admin-only action"""

    def __init__(self, message: str = "Access denied. Admin only."):
        super().__init__(ErrorCode.ACCESS_DENIED, message)
