"""Authentication errors translated to HTTP responses by the API layer."""

from typing import Dict, List, Optional


class ValidationError(Exception):
    """Malformed, missing or conflicting input (HTTP 422)."""

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation failed"):
        super().__init__(message)
        self.message = message
        self.errors = errors


class AuthenticationError(Exception):
    """Missing or invalid token, or bad credentials (HTTP 401)."""

    def __init__(self, message: str = "Unauthenticated."):
        super().__init__(message)
        self.message = message


class InternalError(Exception):
    """Unexpected backend failure (HTTP 500)."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
