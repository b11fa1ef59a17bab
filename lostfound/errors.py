"""
Error taxonomy shared by services and routes.
Each error carries a machine-readable code and the HTTP status a route should answer with.
"""


class LostFoundError(Exception):
    """Base error with a specific error code"""
    default_code = 'ERROR'
    default_status = 500

    def __init__(self, message: str, code: str = None, status_code: int = None):
        self.message = message
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status
        super().__init__(message)

    def to_dict(self):
        return {'success': False, 'error': self.message, 'code': self.code}


class ValidationError(LostFoundError):
    """Malformed or missing input. Raised before any write."""
    default_code = 'VALIDATION_FAILED'
    default_status = 400


class PreconditionError(LostFoundError):
    """Valid input, but the current state forbids the operation. Raised before any write."""
    default_code = 'PRECONDITION_FAILED'
    default_status = 409


class DependencyError(LostFoundError):
    """A store or relay call failed."""
    default_code = 'DEPENDENCY_FAILED'
    default_status = 502
