"""Auth exceptions."""


class AuthException(Exception):
    """Base auth exception with HTTP status."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidCredentials(AuthException):
    def __init__(self):
        super().__init__("bad credentials", status_code=401)


class InvalidToken(AuthException):
    def __init__(self, message: str = "invalid token"):
        super().__init__(message, status_code=401)


class RateLimited(AuthException):
    def __init__(self, message: str = "Too many login attempts"):
        super().__init__(message, status_code=429)
