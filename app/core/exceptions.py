from typing import Optional, Any, Union


class LycaPayError(Exception):
    """
    Base exception for LycaPay application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ResourceNotFoundError(LycaPayError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class AuthenticationError(LycaPayError):
    """
    Raised when webhook authentication fails.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)

class ValidationError(LycaPayError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)

class ExternalServiceError(LycaPayError):
    """
    Raised when an external service (reseller API, Twilio) fails.
    """
    def __init__(self, message: str = "External service error", code: str = "EXTERNAL_SERVICE_ERROR", details: Optional[Any] = None):
        super().__init__(message, code=code, status_code=502, details=details)

class ResellerAPIError(ExternalServiceError):
    """
    The reseller answered but rejected the request with a response code.
    """
    def __init__(self, response_code: Union[str, int, None], message: str, details: Optional[Any] = None):
        self.response_code = None if response_code is None else str(response_code)
        super().__init__(message, code="RESELLER_REJECTED", details=details)

class ResellerTransportError(ExternalServiceError):
    """
    The reseller could not be reached successfully within the retry budget.
    """
    def __init__(self, message: str, response_code: Union[str, int, None] = None, details: Optional[Any] = None):
        self.response_code = None if response_code is None else str(response_code)
        super().__init__(message, code="RESELLER_UNAVAILABLE", details=details)

class PersistenceError(LycaPayError):
    """
    Raised when a required database write fails.
    """
    def __init__(self, message: str = "Database operation failed", details: Optional[Any] = None):
        super().__init__(message, code="PERSISTENCE_ERROR", status_code=500, details=details)
