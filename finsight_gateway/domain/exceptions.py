"""Domain-specific exceptions"""

from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Referenced statement, insight or report does not exist for the user"""

    pass


class ConfigurationError(DomainException):
    """External configuration is missing or malformed"""

    pass


class BureauAPIError(DomainException):
    """Credit bureau returned an error or is unavailable"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransientBureauError(BureauAPIError):
    """Network failure, 5xx or 429 - worth retrying"""

    pass


class PermanentBureauError(BureauAPIError):
    """4xx (other than 429) or unusable response - retrying will not help"""

    pass


class BureauRetriesExhaustedError(BureauAPIError):
    """Every attempt failed with a retryable error"""

    def __init__(self, attempts: int, last_error: BureauAPIError):
        super().__init__(
            f"Bureau API failed after {attempts} attempts: {last_error.message}",
            status_code=last_error.status_code,
        )
        self.attempts = attempts
        self.last_error = last_error


class BureauCheckFailedError(DomainException):
    """Client-facing failure of a credit check; the report row is already marked failed"""

    def __init__(self, reason: str):
        super().__init__(f"Credit bureau check failed: {reason}")
        self.reason = reason
