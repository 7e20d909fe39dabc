"""
Domain exceptions raised by the compliance services.

Each exception carries a French message meant for the end user and the HTTP
status code the API answers with. The error handler exposes these messages
as-is, unlike unexpected exceptions whose details are masked.
"""


class ComplianceError(Exception):
    """Base class of errors whose message can be shown to the user."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(ComplianceError):
    status_code = 401

    def __init__(self, message: str = "Non authentifié"):
        super().__init__(message)


class AccessDeniedError(ComplianceError):
    status_code = 403

    def __init__(self, message: str = "Accès refusé"):
        super().__init__(message)


class ResourceNotFoundError(ComplianceError):
    status_code = 404


class BusinessRuleError(ComplianceError):
    """A request that is well-formed but breaks a compliance rule."""

    status_code = 400


class ConflictError(ComplianceError):
    status_code = 409


class AIServiceUnavailableError(ComplianceError):
    """The LLM could not answer, after retries when the error was transient."""

    status_code = 503
