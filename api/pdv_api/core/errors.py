class PdvError(Exception):
    """Base class for errors raised by the service layer."""

    message = "Unexpected error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class NotFoundError(PdvError):
    message = "Not found"


class ConflictError(PdvError):
    message = "Conflict"


class PersistenceError(PdvError):
    message = "Database operation failed"


class SaleRecordError(PersistenceError):
    message = "Failed to record sale"


class DashboardError(PersistenceError):
    message = "Failed to compute dashboard"
