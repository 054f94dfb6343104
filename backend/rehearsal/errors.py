"""Error taxonomy shared by the turn engine, the evaluator and the API layer."""


class RehearsalError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RehearsalError):
    """Missing or empty message / identifiers."""
    status_code = 400


class ForbiddenError(RehearsalError):
    """Session belongs to a different user."""
    status_code = 403


class NotFoundError(RehearsalError):
    """Scenario or session does not exist."""
    status_code = 404


class ConflictError(RehearsalError):
    """Session already completed or turn limit reached."""
    status_code = 409


class BackendError(RehearsalError):
    """Generative backend call failed, returned nothing, or timed out."""
    status_code = 500


class ParseError(RehearsalError):
    """Model output could not be turned into the expected JSON shape."""
    status_code = 500
