"""Gateway error taxonomy

Every rejection the gateway can produce is a ``GatewayError`` carrying the
HTTP status and the message returned to the client. Internal errors keep
their detail for the logs and expose only a generic message.
"""
from fastapi import status


class GatewayError(Exception):
    """Base class for request rejections"""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Bad request"
    internal: bool = False

    def __init__(self, message: str = None, detail: str = None):
        self.message = message or self.message
        self.detail = detail or self.message
        super().__init__(self.detail)


class MethodNotAllowed(GatewayError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    message = "Method not allowed"


class ForbiddenOrigin(GatewayError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden origin"


class BadContentType(GatewayError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Content-Type must be application/json"


class RateLimited(GatewayError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests. Please try again later."


class ValidationFailed(GatewayError):
    """Field validation failure; ``reason`` is shown to the client"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class VerificationFailed(GatewayError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "reCAPTCHA verification failed"


class VerificationScoreTooLow(GatewayError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "reCAPTCHA score too low"


class InternalGatewayError(GatewayError):
    """Failures the client only sees as a generic 500"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"
    internal = True

    def __init__(self, detail: str):
        super().__init__(detail=detail)


class ConfigurationMissing(InternalGatewayError):
    pass


class PersistenceFailed(InternalGatewayError):
    pass
