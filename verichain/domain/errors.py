"""Error kinds raised by the domain and application layers.

Each error carries the HTTP status code it maps to, so the request boundary
can render a failure envelope without knowing about individual error types.
"""


class VeriChainError(Exception):
    """Base class for all service errors"""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(VeriChainError):
    status_code = 404
    default_message = "Not found"


class VerificationFailed(VeriChainError):
    status_code = 502
    default_message = "Weather verification failed"


class InvalidStateTransition(VeriChainError):
    status_code = 409
    default_message = "Invalid state transition"


class ValidationError(VeriChainError):
    # Reserved for input checks; nothing raises it yet
    status_code = 422
    default_message = "Validation error"
