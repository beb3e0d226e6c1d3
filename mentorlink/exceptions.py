# mentorlink/exceptions.py
from typing import Any, Dict, Optional


class BusinessLogicError(Exception):
    """Base exception for business logic errors"""
    code = "BAD_REQUEST"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

class NotFoundError(BusinessLogicError):
    """Raised when a referenced user or edge is not found"""
    code = "NOT_FOUND"
    status_code = 404

class UnauthorizedError(BusinessLogicError):
    """Raised when the caller may not act on this resource"""
    code = "UNAUTHORIZED"
    status_code = 403

class ConflictError(BusinessLogicError):
    """Raised when a non-terminal mentorship already exists for the pair"""
    code = "CONFLICT"
    status_code = 409

class InvalidStatusTransitionError(BusinessLogicError):
    """Raised when the edge is not in the source state the transition needs"""
    code = "INVALID_TRANSITION"
    status_code = 409

class CapacityExceededError(BusinessLogicError):
    """Raised when the mentor has no free slot at the moment of acceptance"""
    code = "CAPACITY_EXCEEDED"
    status_code = 409

class StoreUnavailableError(BusinessLogicError):
    """Raised when the underlying store cannot be reached"""
    code = "STORE_UNAVAILABLE"
    status_code = 503

class ProfileAlreadyExistsError(ConflictError):
    """Raised when trying to create a profile whose uid is taken"""
