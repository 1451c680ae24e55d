"""Error taxonomy shared by the import pipeline, the store, and bulk actions."""


class OrderEngineError(Exception):
    """Base class for order engine failures."""


class ValidationError(OrderEngineError):
    """A required input field is missing or malformed."""


class ConflictError(OrderEngineError):
    """A unique order code collided with an existing order."""

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or f"order code {code!r} already exists")
        self.code = code


class CodeExhaustedError(ConflictError):
    """Order code regeneration gave up after the configured number of attempts."""

    def __init__(self, attempts: int, last_code: str | None = None):
        super().__init__(
            f"order code still conflicting after {attempts} attempts (last tried {last_code!r})",
            code=last_code,
        )
        self.attempts = attempts


class StorageError(OrderEngineError):
    """The backing database failed (transient or permanent)."""


class PreconditionError(OrderEngineError):
    """A caller invoked an operation with empty or invalid arguments."""


class ImportFileError(OrderEngineError):
    """The uploaded spreadsheet could not be decoded into rows."""
