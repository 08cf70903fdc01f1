"""
Error types

Every error raised by the request handlers derives from VidShareError and
carries the HTTP status it maps to. main.py turns them into {"error": ...}.
"""


class VidShareError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(VidShareError):
    """Malformed input. Never persisted."""
    status_code = 400


class DuplicateIdError(ValidationError):
    pass


class InvalidInput(ValidationError):
    pass


class AuthError(VidShareError):
    def __init__(self, message: str, status_code: int, reason: str):
        super().__init__(message, status_code)
        self.reason = reason


class StoreError(VidShareError):
    """The backing store failed or is not configured."""
    status_code = 500
