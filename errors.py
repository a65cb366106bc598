"""
API error taxonomy.

Each error carries the HTTP status it maps to. The exception handlers in
main.py render every one of them as a JSON ``{"message": ...}`` body.
"""


class APIError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthorized(APIError):
    status_code = 401
    message = "Token is not valid"


class InvalidCredentials(APIError):
    status_code = 400
    message = "Invalid credentials"


class DuplicateEmail(APIError):
    status_code = 400
    message = "Email already registered"


class NotFound(APIError):
    status_code = 404
    message = "Not found"


class InternalError(APIError):
    status_code = 500
    message = "Server error"
