"""Question-flow exceptions."""


class FlowException(Exception):
    """Base flow exception with HTTP status."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(FlowException):
    """A turn request is missing a required field. Nothing was changed."""

    def __init__(self, message: str = "Missing required fields"):
        super().__init__(message, status_code=400)


class SessionNotFound(FlowException):
    """Unknown or expired session id; the client has to start over."""

    def __init__(self, session_id: str):
        super().__init__("Session not found", status_code=404)
        self.session_id = session_id


class StaleQuestionError(FlowException):
    """The answer refers to a question the session is no longer on."""

    def __init__(self, expected: str, received: str):
        super().__init__(
            f"Answer is for '{received}' but the current question is '{expected}'",
            status_code=409,
        )
        self.expected = expected
        self.received = received


class GraphConfigurationError(FlowException):
    """The question graph is inconsistent. This is a data bug, not a user error."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500)


class NodeNotFound(GraphConfigurationError):
    def __init__(self, node_id: str):
        super().__init__(f"Question node '{node_id}' does not exist")
        self.node_id = node_id


class ProviderDegraded(FlowException):
    """Speech synthesis is unavailable. Logged, never shown to the end user."""

    def __init__(self, message: str):
        super().__init__(message, status_code=503)
