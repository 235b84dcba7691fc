"""
Error taxonomy shared by the repository layer and the HTTP API.

Every error carries a stable `kind` that clients can branch on without
matching message prose, and the HTTP status it maps to.
"""


class LedgerError(Exception):
    kind: str = "internal"
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Malformed or missing input; never reaches storage."""

    kind = "validation"
    status_code = 422


class NotFoundError(LedgerError):
    kind = "not_found"
    status_code = 404


class ConflictError(LedgerError):
    """A unique constraint (thing email, company name) would be violated."""

    kind = "conflict"
    status_code = 409


class StorageUnavailableError(LedgerError):
    """Connection or pool failure. The request fails; clients retry."""

    kind = "storage_unavailable"
    status_code = 503


class MigrationError(LedgerError):
    """Schema could not be brought to the expected revision. Fatal at startup."""

    kind = "migration"
    status_code = 500
