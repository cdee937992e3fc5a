from typing import Optional, Any


class PhoneAuthError(Exception):
    """
    Base exception for the phone auth service.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ClientInputError(PhoneAuthError):
    """
    Raised when required request fields are missing or malformed.
    """
    def __init__(self, message: str = "Invalid request", code: str = "MISSING_FIELDS", details: Optional[Any] = None):
        super().__init__(message, code=code, status_code=400, details=details)


class NotFoundError(PhoneAuthError):
    """
    Raised when a verification record does not exist (never issued, consumed or swept).
    """
    def __init__(self, message: str = "Verification code not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=400, details=details)


class CodeExpiredError(PhoneAuthError):
    def __init__(self, message: str = "Verification code has expired", details: Optional[Any] = None):
        super().__init__(message, code="CODE_EXPIRED", status_code=400, details=details)


class IncorrectCodeError(PhoneAuthError):
    def __init__(self, message: str = "Incorrect verification code", details: Optional[Any] = None):
        super().__init__(message, code="INCORRECT_CODE", status_code=400, details=details)


class UpstreamDeliveryError(PhoneAuthError):
    """
    Raised when the messaging gateway fails. Never surfaced to API callers.
    """
    def __init__(self, message: str = "Message delivery failed", details: Optional[Any] = None):
        super().__init__(message, code="UPSTREAM_DELIVERY_ERROR", status_code=502, details=details)


class StoreError(PhoneAuthError):
    """
    Raised when the verification record store fails.
    """
    def __init__(self, message: str = "Verification store error", details: Optional[Any] = None):
        super().__init__(message, code="STORE_ERROR", status_code=500, details=details)


class IdentityProviderError(PhoneAuthError):
    """
    Raised when the identity directory fails for any reason other than "no such identity".
    """
    def __init__(self, message: str = "Identity provider error", details: Optional[Any] = None):
        super().__init__(message, code="IDENTITY_PROVIDER_ERROR", status_code=500, details=details)


class DuplicateIdentityError(IdentityProviderError):
    """
    Raised when creating an identity for a phone number that already has one.
    """
    def __init__(self, message: str = "Identity already exists for phone number", details: Optional[Any] = None):
        super().__init__(message, details=details)
