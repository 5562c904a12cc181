class AppError(Exception):
    """Base for failures that end one request without touching stored state."""

    status_code = 400
    code = "ERROR"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(AppError):
    code = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    code = "INVALID_AMOUNT"

    def __init__(self, message: str = "amount must be a positive decimal", field: str = "amount") -> None:
        super().__init__(message, field)


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class InvalidAccountError(NotFoundError):
    # transfer reports unresolved accounts as a bad request, not a missing route
    status_code = 400
    code = "INVALID_ACCOUNT"


class ParseError(AppError):
    code = "PARSE_ERROR"

    def __init__(self, reason: str, field: str = "icsData") -> None:
        super().__init__("failed to parse ICS data", field)
        self.reason = reason


class StorageError(AppError):
    status_code = 500
    code = "STORAGE_ERROR"
