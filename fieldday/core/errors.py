class FieldDayError(Exception):
    status_code: int = 500
    kind: str = "error"


class NotFoundError(FieldDayError):
    status_code = 404
    kind = "not_found"


class ValidationError(FieldDayError):
    status_code = 400
    kind = "validation"


class ConflictError(FieldDayError):
    status_code = 409
    kind = "conflict"


class CapacityExceeded(FieldDayError):
    """Candidate pool would pass the safety ceiling; the request is aborted."""

    status_code = 422
    kind = "capacity_exceeded"

    def __init__(self, limit: int, max_letter: str, max_number: int):
        self.limit = limit
        self.max_letter = max_letter
        self.max_number = max_number
        super().__init__(
            f"Identifier space {max_letter}x{max_number} exceeds {limit} candidates; "
            "choose a smaller letter or number range"
        )


class PersistenceFailure(FieldDayError):
    status_code = 503
    kind = "persistence"

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Could not {operation}")


class SchemaVersionConflict(ConflictError):
    kind = "schema_version_conflict"

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Columns were changed by someone else (version {actual}, expected {expected}); reload and retry"
        )
