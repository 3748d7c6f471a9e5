# cathealth/core/exceptions.py
"""
Error taxonomy shared by the API routes, the services and the wizard.

Every error carries the HTTP status the API answers with and a message that is
safe to show to the user.  Route handlers never build error bodies themselves:
the handler registered in ``cathealth.main`` turns any ``CatHealthError`` into
``{"error": message}``.
"""
from typing import Optional


class CatHealthError(Exception):
    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CatHealthError):
    """Missing or malformed user input, reported next to the offending field."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AuthRequired(CatHealthError):
    """No live session; the user has to sign in before retrying."""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class UpstreamError(CatHealthError):
    """The AI or email collaborator failed. No automatic retry."""

    status_code = 500


class SchemaError(CatHealthError):
    """
    AI output that is not valid JSON or does not match the expected shape.
    Only raised inside the AI client; callers always get fallback data instead.
    """

    status_code = 500
