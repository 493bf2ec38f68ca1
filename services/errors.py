# services/errors.py
"""Error taxonomy for the production engine.

Every error carries an HTTP status so the API layer can render it through a
single exception handler (see main.py).
"""


class ProductionError(Exception):
    status_code = 400
    kind = "production_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ProductionError):
    """Malformed or out-of-enum input. No state was changed."""

    status_code = 400
    kind = "validation_error"


class NotFound(ProductionError):
    status_code = 404
    kind = "not_found"


class Conflict(ProductionError):
    status_code = 409
    kind = "conflict"


class InvalidState(ProductionError):
    status_code = 409
    kind = "invalid_state"


class PreconditionFailed(ProductionError):
    status_code = 422
    kind = "precondition_failed"


class Blocked(ProductionError):
    """An unresolved blocking anomaly forbids the action."""

    status_code = 423
    kind = "blocked"
