"""Domain exceptions raised by the authorization and audit engine.

Handlers registered in ``main.py`` turn these into JSON responses.
Authorization and validation failures are client errors; ledger failures
are server errors and are never recovered.
"""


class EngineError(Exception):
    """Base exception for the engine."""

    status_code = 400

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class PermissionDenied(EngineError):
    """Access decision was negative. Never says why."""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class NotFound(EngineError):
    """Unknown user, record or deleted-record entry."""

    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class NotRestorable(EngineError):
    """Deleted-record entry is expired, already restored, or orphaned."""

    status_code = 409

    EXPIRED = "expired"
    ALREADY_RESTORED = "already_restored"
    PARENT_DELETED = "parent_deleted"

    MESSAGES = {
        EXPIRED: "Record has expired and can no longer be restored",
        ALREADY_RESTORED: "Record has already been restored",
        PARENT_DELETED: "Record belongs to a deleted parent; restore the parent first",
    }

    def __init__(self, reason: str, message: str | None = None):
        self.reason = reason
        super().__init__(message or self.MESSAGES[reason])


class CascadeConflict(EngineError):
    """Dependent records exist and force was not requested."""

    status_code = 409

    def __init__(self, dependent_count: int, message: str | None = None):
        self.dependent_count = dependent_count
        super().__init__(
            message
            or f"Record has {dependent_count} dependent records; pass force=true to delete them too"
        )


class AuditWriteFailed(EngineError):
    """The ledger could not persist an entry inside a transaction."""

    status_code = 500

    def __init__(self, message: str = "Audit write failed"):
        super().__init__(message)
