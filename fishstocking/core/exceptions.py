"""
Custom Application Exceptions
"""
from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Stable machine-readable error codes surfaced to API clients"""
    INVALID_ID = "INVALID_ID"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_EVENT_TIME = "INVALID_EVENT_TIME"
    INVALID_FISH_TYPE = "INVALID_FISH_TYPE"
    INVALID_FISH_AGE = "INVALID_FISH_AGE"
    INVALID_ASSIGNED_TO = "INVALID_ASSIGNED_TO"
    INVALID_STOCKING_CUSTOMER = "INVALID_STOCKING_CUSTOMER"
    INVALID_TENANT = "INVALID_TENANT"
    INVALID_FISH_ORIGIN = "INVALID_FISH_ORIGIN"
    INVALID_BATCH_DATA = "INVALID_BATCH_DATA"
    INVALID_GEOMETRY = "INVALID_GEOMETRY"
    INVALID_CANCELED_AT = "INVALID_CANCELED_AT"
    INVALID_INSPECTOR = "INVALID_INSPECTOR"
    AFTER_PERMITTED_DELETION_TIME = "AFTER_PERMITTED_DELETION_TIME"
    UPDATE_FAILED = "UPDATE_FAILED"
    NO_RIGHTS = "NO_RIGHTS"
    NOT_FOUND = "NOT_FOUND"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"


class FishStockingException(Exception):
    """Base exception for the fish stocking application"""

    default_code = ErrorCode.UPDATE_FAILED

    def __init__(self, code: Optional[ErrorCode] = None, message: Optional[str] = None):
        self.code = code or self.default_code
        self.message = message or self.code.value
        super().__init__(self.message)


class ValidationError(FishStockingException):
    """Raised when request data or a lifecycle precondition is invalid"""
    pass


class InsufficientPermissionsError(FishStockingException):
    """Raised when the actor may not touch the event"""
    default_code = ErrorCode.NO_RIGHTS


class NotFoundError(FishStockingException):
    """Raised when a referenced row does not exist"""
    default_code = ErrorCode.NOT_FOUND


class ConcurrentModificationError(FishStockingException):
    """Raised when another request changed the event first"""
    default_code = ErrorCode.CONCURRENT_MODIFICATION
