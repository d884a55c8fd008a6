"""Application-level exceptions and FastAPI exception handlers."""


from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: str | None = None):
        msg = f"{entity} not found" if not entity_id else f"{entity} '{entity_id}' not found"
        super().__init__(msg, status_code=404, code="NOT_FOUND")

class ConflictError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=409, code="CONFLICT")

class ValidationError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=422, code="VALIDATION_ERROR")

class InvalidKeyError(ValidationError):
    """Raised when a record has an empty or missing vendor name."""

    def __init__(self, message: str = "Vendor name must not be empty"):
        super().__init__(message)
        self.code = "INVALID_KEY"

# ---------------------------------------------------------------------------
# Persistence failures
# ---------------------------------------------------------------------------

class EngineLoadError(AppException):
    """The embedded SQL engine could not be opened. Nothing else can work."""

    def __init__(self, message: str):
        super().__init__(message, status_code=503, code="ENGINE_LOAD_ERROR")

class SnapshotCorruptError(AppException):
    """Stored snapshot bytes could not be turned back into a database."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500, code="SNAPSHOT_CORRUPT")

class AdapterIOError(AppException):
    """A single load/save against the storage medium failed."""

    def __init__(self, message: str):
        super().__init__(message, status_code=503, code="STORAGE_IO_ERROR")

class EngineExecutionError(AppException):
    """A statement failed inside the engine (schema / column-list mismatch)."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500, code="ENGINE_EXECUTION_ERROR")

class RepositoryUnavailableError(AppException):
    """Initialization failed; raised by every repository call until reset()."""

    def __init__(self, cause: AppException):
        self.cause = cause
        super().__init__(
            f"Vendor data bank is unavailable: {cause.message}",
            status_code=503,
            code="REPOSITORY_UNAVAILABLE",
        )

# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def _error_body(code: str, message: str, cause: str | None = None) -> dict:
    error = {"code": code, "message": message}
    if cause is not None:
        error["cause"] = cause
    return {"error": error}

def _cause_code(exc: AppException) -> str | None:
    if isinstance(exc, RepositoryUnavailableError):
        return exc.cause.code
    return None

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message, _cause_code(exc)),
        )

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content=_error_body("NOT_FOUND", "Resource not found"),
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_ERROR", "An unexpected error occurred"),
        )
