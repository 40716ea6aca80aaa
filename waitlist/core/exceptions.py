"""
Custom exceptions for the waitlist service
"""


class BaseAppException(Exception):
    """Base application exception"""
    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ValidationError(BaseAppException):
    """Raised when an email address fails validation"""
    def __init__(self, message: str = "invalid email", details: str = None):
        super().__init__(message, details)


class NotFoundError(BaseAppException):
    """Raised when a confirmation token does not resolve to an entry"""
    def __init__(self, message: str = "invalid or expired token", details: str = None):
        super().__init__(message, details)


class PersistenceError(BaseAppException):
    """Raised when the backing store is unavailable or a write fails"""
    pass


class NotificationError(BaseAppException):
    """Raised by mail transports when a message cannot be dispatched"""
    pass


class ConfigurationError(BaseAppException):
    """Raised at startup when mandatory connectivity settings are missing"""
    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        message = "Missing required environment variables: " + ", ".join(self.missing)
        super().__init__(message, details="Set them in your .env file or deployment platform.")


class RateLimitExceeded(BaseAppException):
    """Raised when a client exceeds the API request budget"""
    def __init__(self, message: str = "too many requests", details: str = None):
        super().__init__(message, details)
